"""Test case data."""

from enum import IntEnum


class TestResult(IntEnum):
    """Enumeration of all possible results of a single test case."""
    __test__ = False

    UNKNOWN = 0     # test result is not known
    PASS = 1        # test succeeded
    FAIL = 2        # test failed an assertion
    SKIP = 3        # test was skipped
    ERROR = 4       # test raised an unexpected error


# Results that count as a failure of the test
FAILED_RESULTS = frozenset((TestResult.FAIL, TestResult.ERROR))
