"""testquarantine default configuration file

Every configuration element ever used in the program must exist here.
These defaults may be overridden in the user's config file.

The variables guaranteed to be available are set in config.environ()
"""


# Path to the database holding the quarantine list
database_path = '{XDG_DATA_HOME}/testquarantine.sqlite3'

# Glob pattern selecting JUnit XML report files, relative to the workspace
test_results = '**/TEST-*.xml'

# Whether to keep the complete stdout/stderr of passing tests
keep_long_stdio = False

# Names of the test data publishers to run after parsing, in order
test_data_publishers = ['quarantine']

# Text file listing quarantined tests, used by the quarantine-file publisher
quarantine_list_file = ''

# URL of a JSON list of quarantined tests, used by the quarantine-url publisher
quarantine_list_url = ''

# Seconds to wait for the quarantine list URL to respond
url_timeout_seconds = 60

# Number of characters kept at each end of the output of a passing test
# when keep_long_stdio is off
stdio_half_max_size = 500

# Report files modified up to this many seconds before the build started are still new.
# This allows for clock granularity differences between the build and the file system.
report_age_slack_seconds = 3
