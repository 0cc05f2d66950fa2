"""Test data publishers: stages that attach extra data to parsed test cases.

Publishers run after the test reports have been parsed and before the build status is
decided. Each one returns a mapping from test full name to a list of actions for that
test, or None if it has nothing to add. The quarantine publishers attach a
QuarantineTestAction to tests, which the gate reads when deciding the build status.

Publishers are registered under a short name so that they can be selected in the job
configuration.
"""

import logging
import os
from typing import Any, Optional

from testquarantine import config
from testquarantine import db
from testquarantine import netreq
from testquarantine.builddef import Build, BuildListener
from testquarantine.errors import FormError, MalformedReportError
from testquarantine.resultdef import QuarantineTestAction, TestData, TestResultSet


# All known publisher classes, by name
_registry = {}  # type: dict[str, type[TestDataPublisher]]


def register(cls: type) -> type:
    """Class decorator making a publisher available by its name."""
    _registry[cls.name] = cls
    return cls


def all_publishers() -> dict[str, type]:
    return dict(_registry)


def create(name: str, settings: Optional[dict[str, Any]] = None) -> 'TestDataPublisher':
    """Create a publisher by name from its configuration settings."""
    try:
        cls = _registry[name]
    except KeyError as e:
        raise FormError(f'Unknown test data publisher {name}', 'testDataPublishers') from e
    return cls.from_form(settings or {})


class TestDataPublisher:
    """Base class of all test data publishers."""
    __test__ = False

    # Name under which the publisher is registered
    name = ''

    @classmethod
    def from_form(cls, settings: dict[str, Any]) -> 'TestDataPublisher':
        return cls()

    def get_test_data(self, build: Build, listener: BuildListener,
                      results: TestResultSet) -> Optional[TestData]:
        raise NotImplementedError


def flag_cases(results: TestResultSet,
               actions: dict[str, QuarantineTestAction]) -> TestData:
    """Give every test case in the results its quarantine action.

    Tests with no entry get an unquarantined action.
    """
    unflagged = QuarantineTestAction(False)
    return {c.full_name: [actions.get(c.full_name, unflagged)] for c in results.cases}


@register
class QuarantineTestDataPublisher(TestDataPublisher):
    """Flags tests quarantined in the quarantine database."""

    name = 'quarantine'

    def __init__(self, database_path: str = ''):
        self.database_path = database_path

    @classmethod
    def from_form(cls, settings: dict[str, Any]) -> TestDataPublisher:
        return cls(settings.get('databasePath', ''))

    def get_test_data(self, build: Build, listener: BuildListener,
                      results: TestResultSet) -> Optional[TestData]:
        with db.Datastore(self.database_path) as ds:
            entries = ds.select_all()
        logging.debug('%d tests are in quarantine', len([1 for e in entries if e.quarantined]))
        return flag_cases(results, {e.name: e.test_action() for e in entries})


def parse_quarantine_list(text: str) -> list[str]:
    """Parse a list of test names, one per line, ignoring blank lines and # comments."""
    names = []
    for line in text.splitlines():
        if name := line.split('#', 1)[0].strip():
            names.append(name)
    return names


@register
class QuarantineListFilePublisher(TestDataPublisher):
    """Flags the tests named in a text file.

    The file name may refer to build environment variables and is relative to the
    build workspace.
    """

    name = 'quarantine-file'

    def __init__(self, filename: str = ''):
        self.filename = filename

    @classmethod
    def from_form(cls, settings: dict[str, Any]) -> TestDataPublisher:
        return cls(settings.get('file', ''))

    def get_test_data(self, build: Build, listener: BuildListener,
                      results: TestResultSet) -> Optional[TestData]:
        filename = self.filename or config.expand('quarantine_list_file')
        if not filename:
            logging.warning('No quarantine list file configured')
            return None
        path = os.path.join(build.workspace, build.expand(filename))
        try:
            with open(path, encoding='utf-8') as f:
                names = parse_quarantine_list(f.read())
        except UnicodeDecodeError as e:
            raise MalformedReportError(f'Quarantine list {path} is not valid UTF-8: {e}',
                                       path) from e
        logging.debug('Read %d quarantined tests from %s', len(names), path)
        reason = f'listed in {filename}'
        return flag_cases(results, {n: QuarantineTestAction(True, reason=reason) for n in names})


@register
class QuarantineListUrlPublisher(TestDataPublisher):
    """Flags the tests in a JSON quarantine list retrieved over HTTP.

    The document is a list whose items are either test names or objects with the
    keys name and optionally reason and user.
    """

    name = 'quarantine-url'

    def __init__(self, url: str = '', session: Optional[netreq.Session] = None):
        self.url = url
        self.session = session

    @classmethod
    def from_form(cls, settings: dict[str, Any]) -> TestDataPublisher:
        url = settings.get('url', '')
        if url and not url.startswith(('http://', 'https://')):
            raise FormError(f'Invalid quarantine list URL {url}', 'url')
        return cls(url)

    def get_test_data(self, build: Build, listener: BuildListener,
                      results: TestResultSet) -> Optional[TestData]:
        url = build.expand(self.url or config.expand('quarantine_list_url'))
        if not url:
            logging.warning('No quarantine list URL configured')
            return None
        session = self.session or netreq.Session()
        logging.info('Retrieving quarantine list from %s', url)
        doc = netreq.get_json(session, url, config.get('url_timeout_seconds'))
        if not isinstance(doc, list):
            raise MalformedReportError(f'Quarantine list at {url} is not a JSON list', url)

        actions = {}
        for item in doc:
            if isinstance(item, str):
                actions[item] = QuarantineTestAction(True)
            elif isinstance(item, dict) and isinstance(item.get('name'), str):
                actions[item['name']] = QuarantineTestAction(
                    True, item.get('user', ''), item.get('reason', ''))
            else:
                raise MalformedReportError(f'Bad quarantine list entry {item!r} at {url}', url)
        return flag_cases(results, actions)
