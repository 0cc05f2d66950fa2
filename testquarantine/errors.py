"""Exceptions raised while archiving test results."""


class ArchiveAbort(Exception):
    """Archiving cannot continue; the message alone explains why.

    These are reported as a single line in the build log.
    """


class EmptyResultError(ArchiveAbort):
    """Test reports were parsed but contained no passing or failing tests."""


class NoReportFilesError(ArchiveAbort):
    """The test report pattern matched no files."""


class StaleReportsError(ArchiveAbort):
    """Test report files were found but all predate the build."""


class MalformedReportError(Exception):
    """A test report file exists but cannot be parsed."""

    def __init__(self, message: str, filename: str = ''):
        super().__init__(message)
        self.filename = filename


class FormError(ValueError):
    """Invalid archiver configuration was submitted."""

    def __init__(self, message: str, field: str = ''):
        super().__init__(message)
        self.field = field
