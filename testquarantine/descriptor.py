"""Descriptors: how a CI job configuration creates publishers.

A descriptor is registered for each kind of publisher with the extension decorator. The
job configuration form submits a dict of settings, which the descriptor turns into a
configured publisher instance.
"""

from typing import Any

from testquarantine import messages
from testquarantine import publishers
from testquarantine.archiver import QuarantinableResultArchiver
from testquarantine.errors import FormError


# All registered descriptors, by display name
_extensions = {}  # type: dict[str, PublisherDescriptor]


def extension(cls: type) -> type:
    """Class decorator registering a descriptor under its display name."""
    descriptor = cls()
    _extensions[descriptor.display_name] = descriptor
    return cls


def find(display_name: str) -> 'PublisherDescriptor':
    return _extensions[display_name]


class PublisherDescriptor:
    display_name = ''

    def new_instance(self, form_data: dict[str, Any]):
        raise NotImplementedError


def _rebuild_publishers(entries: Any) -> list[publishers.TestDataPublisher]:
    """Create the test data publishers listed in the form data.

    Each entry is a dict whose kind key names the publisher; the rest are its settings.
    A plain string is taken as a kind with no settings.
    """
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise FormError('testDataPublishers must be a list', 'testDataPublishers')
    result = []
    for entry in entries:
        if isinstance(entry, str):
            result.append(publishers.create(entry))
        elif isinstance(entry, dict) and 'kind' in entry:
            settings = {k: v for k, v in entry.items() if k != 'kind'}
            result.append(publishers.create(entry['kind'], settings))
        else:
            raise FormError(f'Invalid test data publisher {entry!r}', 'testDataPublishers')
    return result


@extension
class QuarantinableResultArchiverDescriptor(PublisherDescriptor):
    display_name = messages.DISPLAY_NAME

    def new_instance(self, form_data: dict[str, Any]) -> QuarantinableResultArchiver:
        test_results = form_data.get('testResults')
        if not isinstance(test_results, str) or not test_results.strip():
            raise FormError('testResults must be a file pattern', 'testResults')
        keep_long_stdio = form_data.get('keepLongStdio', False)
        if not isinstance(keep_long_stdio, bool):
            raise FormError('keepLongStdio must be true or false', 'keepLongStdio')
        return QuarantinableResultArchiver(
            test_results, keep_long_stdio,
            _rebuild_publishers(form_data.get('testDataPublishers')))
