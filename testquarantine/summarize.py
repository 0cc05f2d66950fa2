"""Human-readable summaries of test results and of the quarantine list"""

import datetime
import io
from typing import Iterable, List

from testquarantine.quarantinedef import QuarantineEntry
from testquarantine.resultdef import TestResultSet
from testquarantine.testcasedef import TestResult


def show_totals(results: TestResultSet, details: bool = False):
    print(''.join(summarize_totals(results, details)))


def summarize_totals(results: TestResultSet, details: bool = False) -> List[str]:
    f = io.StringIO()
    print("OK:", results.pass_count, file=f)
    print("FAILED:", results.fail_count, file=f)
    print("SKIPPED:", results.skip_count, file=f)
    if match := [1 for x in results.cases if x.result == TestResult.UNKNOWN]:
        print("UNKNOWN:", len(match), file=f)
    print("TOTAL:", len(results.cases), file=f)
    if details:
        # Display the failures, marking the quarantined ones
        for test in results.failed_tests:
            mark = ' (quarantined)' if results.quarantine_flag(test) else ''
            print(f'{test.result.name} {test.full_name}{mark}', file=f)
            if test.reason:
                print(f'    {test.reason}', file=f)
    f.seek(0)
    return f.readlines()


def format_time(t: int) -> str:
    return datetime.datetime.fromtimestamp(t, tz=datetime.timezone.utc).strftime('%Y-%m-%d %H:%M')


def quarantine_report(entries: Iterable[QuarantineEntry]) -> List[str]:
    """Describe each quarantine entry on one line."""
    lines = []
    for e in entries:
        state = 'quarantined' if e.quarantined else 'released'
        line = f'{e.name}: {state} by {e.user or "unknown"} on {format_time(e.time)}'
        if e.reason:
            line += f': {e.reason}'
        lines.append(line)
    return lines
