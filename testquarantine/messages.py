"""User-visible messages written to the build log."""

DISPLAY_NAME = 'Publish JUnit test result report with quarantine'

RECORDING = 'Recording test results'

BAD_XML = 'Incorrect XML attributes for test results found in {0}'

RESULT_IS_EMPTY = 'None of the test reports contained any result'

NO_REPORTS = 'No test report files were found. Configuration error?'

STALE_REPORTS = ('Test reports were found but none of them are new. Did tests run? '
                 'For example, {0} is {1} old')

ARCHIVE_FAILED = 'Failed to archive test reports'

# Prefix of all quarantine messages
QUARANTINE_PREFIX = '[Quarantine]: '

QUARANTINED_FAILURE = QUARANTINE_PREFIX + '{0} failed but is quarantined'

REMAINING_FAILURES = QUARANTINE_PREFIX + '{0} unquarantined failures remaining'
