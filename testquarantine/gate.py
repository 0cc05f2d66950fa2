"""Decides the build status from test results, allowing for quarantined tests.

A failing test that has been quarantined is known to be flaky, so its failure does not
make the build unstable. If every failure is quarantined the build is a success even
though failures occurred.
"""

import logging
from typing import NamedTuple, Optional

from testquarantine import messages
from testquarantine.builddef import BuildListener, BuildStatus
from testquarantine.errors import EmptyResultError
from testquarantine.resultdef import TestResultSet


class GateDecision(NamedTuple):
    status: BuildStatus
    remaining: int      # failures not covered by quarantine
    quarantined: int    # failures covered by quarantine


def check_not_empty(results: TestResultSet):
    """Raise EmptyResultError if no test passed or failed.

    This usually means the report pattern points at the wrong files.
    """
    if results.pass_count == 0 and results.fail_count == 0:
        raise EmptyResultError(messages.RESULT_IS_EMPTY)


def decide(results: TestResultSet, listener: Optional[BuildListener] = None) -> GateDecision:
    """Decide the build status for a set of test results.

    One line is logged per quarantined failure, then a summary line, but only if
    there were any failures.
    """
    check_not_empty(results)

    fail_count = results.fail_count
    if fail_count == 0:
        return GateDecision(BuildStatus.SUCCESS, 0, 0)

    quarantined = 0
    for case in results.failed_tests:
        if results.quarantine_flag(case):
            _log(listener, messages.QUARANTINED_FAILURE.format(case.full_name))
            quarantined += 1

    remaining = fail_count - quarantined
    _log(listener, messages.REMAINING_FAILURES.format(remaining))

    status = BuildStatus.UNSTABLE if remaining > 0 else BuildStatus.SUCCESS
    return GateDecision(status, remaining, quarantined)


def _log(listener: Optional[BuildListener], msg: str):
    logging.info('%s', msg)
    if listener:
        listener.println(msg)
