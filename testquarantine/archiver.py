"""Archives the test results of a build, overriding failures of quarantined tests.

Because a build result can only ever be made worse, quarantine cannot be applied by a
stage running after an ordinary archiver; by then the build is already unstable. So the
archiver does the whole job: parse the reports, attach test data, record the results on
the build and only then decide, with the quarantine in hand, whether the build is
unstable.
"""

import logging
import traceback
from typing import Iterable, Optional

from testquarantine import db
from testquarantine import gate
from testquarantine import messages
from testquarantine.builddef import Build, BuildListener, BuildStatus, TestResultAction
from testquarantine.errors import ArchiveAbort, MalformedReportError
from testquarantine.publishers import TestDataPublisher
from testquarantine.reportparser import junitparse
from testquarantine.resultdef import TestResultSet


# Errors that are reported with a traceback and fail the build
ARCHIVE_ERRORS = (MalformedReportError, OSError, db.DatabaseError)


class QuarantinableResultArchiver:
    """Publisher that records JUnit test results with quarantine taken into account."""

    def __init__(self, test_results: str, keep_long_stdio: bool = False,
                 test_data_publishers: Optional[Iterable[TestDataPublisher]] = None):
        self.test_results = test_results
        self.keep_long_stdio = keep_long_stdio
        self.test_data_publishers = list(test_data_publishers or [])

    def parse(self, pattern: str, build: Build) -> TestResultSet:
        return junitparse.parse(pattern, build.workspace, self.keep_long_stdio,
                                build.start_time)

    def collect_test_data(self, build: Build, listener: BuildListener,
                          results: TestResultSet) -> TestResultSet:
        data = []
        for tdp in self.test_data_publishers:
            logging.debug('Running test data publisher %s', tdp.name)
            if (d := tdp.get_test_data(build, listener, results)) is not None:
                data.append(d)
        return results.with_data(data)

    def wait_for_previous(self, build: Build):
        """Block until the previous build has recorded its test results."""
        if build.previous_build:
            logging.debug('Waiting for build %d to archive its results',
                          build.previous_build.number)
            build.previous_build.archived.result()

    def perform(self, build: Build, listener: BuildListener) -> bool:
        """Archive the test results and set the build status.

        Errors never escape; they are written to the build log and fail the build
        instead. Always returns True so the build carries on to later stages.
        """
        try:
            return self._perform(build, listener)
        finally:
            # A following build must never wait forever on this one
            if not build.archived.done():
                build.archived.set_result(None)

    def _perform(self, build: Build, listener: BuildListener) -> bool:
        listener.println(messages.RECORDING)
        pattern = build.expand(self.test_results)

        try:
            results = self.parse(pattern, build)
            gate.check_not_empty(results)
            results = self.collect_test_data(build, listener, results)
            self.wait_for_previous(build)

        except ArchiveAbort as e:
            if build.result == BuildStatus.FAILURE:
                # Most likely the build failed before it got to running tests,
                # so don't add a confusing message
                logging.debug('Ignoring "%s" on a failed build', e)
                return True
            listener.println(str(e))
            build.set_result(BuildStatus.FAILURE)
            return True

        except ARCHIVE_ERRORS as e:
            traceback.print_exception(type(e), e, e.__traceback__,
                                      file=listener.error(messages.ARCHIVE_FAILED))
            build.set_result(BuildStatus.FAILURE)
            return True

        action = TestResultAction(build, results)
        build.actions.append(action)
        build.archived.set_result(action)

        decision = gate.decide(action.result, listener)
        if decision.status == BuildStatus.UNSTABLE:
            build.set_result(BuildStatus.UNSTABLE)
        return True
