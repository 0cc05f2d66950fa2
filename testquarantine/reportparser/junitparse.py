"""Parses JUnit XML test report files.

The format is the one written by Ant's junit task, Maven surefire, pytest --junitxml and
most other test frameworks: a <testsuite> element (or several within <testsuites>)
holding one <testcase> element per test. A test case containing <failure> failed an
assertion, one containing <error> raised an unexpected error and one containing <skipped>
did not run.
"""

import datetime
import glob
import logging
import os
import sys
import xml.etree.ElementTree as ET
from typing import Iterable, Optional

from testquarantine import config
from testquarantine import messages
from testquarantine import summarize
from testquarantine.errors import MalformedReportError, NoReportFilesError, StaleReportsError
from testquarantine.resultdef import TestCase, TestResultSet
from testquarantine.testcasedef import FAILED_RESULTS, TestResult


# Root elements accepted as a JUnit report
ROOT_TAGS = frozenset(('testsuites', 'testsuite'))


def find_reports(pattern: str, workspace: str) -> list[str]:
    """Return the report files matching the glob pattern, sorted by name.

    Several patterns may be given separated by commas.
    """
    files = set()
    for pat in pattern.split(','):
        if pat := pat.strip():
            files.update(f for f in glob.glob(os.path.join(workspace, pat), recursive=True)
                         if os.path.isfile(f))
    return sorted(files)


def new_reports(files: Iterable[str], build_time: float) -> list[str]:
    """Return only those report files written since the build started.

    Raises StaleReportsError if there are none.
    """
    files = list(files)
    threshold = build_time - config.get('report_age_slack_seconds')
    fresh = [f for f in files if os.path.getmtime(f) >= threshold]
    if not fresh:
        newest = max(files, key=os.path.getmtime)
        age = datetime.timedelta(seconds=round(build_time - os.path.getmtime(newest)))
        raise StaleReportsError(messages.STALE_REPORTS.format(newest, age))
    return fresh


def trim_stdio(stdio: str, keep_long_stdio: bool, failed: bool) -> str:
    """Shorten the output of a passing test by cutting out its middle.

    The whole output of a failed test is kept since that is where the clues are.
    """
    if keep_long_stdio or failed:
        return stdio
    half = config.get('stdio_half_max_size')
    middle = len(stdio) - half * 2
    if middle <= 0:
        return stdio
    return f'{stdio[:half]}\n...[truncated {middle} chars]...\n{stdio[-half:]}'


def duration_us(time_attr: Optional[str]) -> int:
    """Convert a time attribute in seconds into microseconds."""
    if not time_attr:
        return 0
    try:
        # Some writers use a thousands separator
        return round(float(time_attr.replace(',', '')) * 1000000)
    except (ValueError, OverflowError):
        # nan raises ValueError, inf raises OverflowError
        logging.debug('Ignoring bad test time %s', time_attr)
        return 0


def element_text(el: Optional[ET.Element]) -> str:
    if el is None or el.text is None:
        return ''
    return el.text


def parse_case(el: ET.Element, suite_stdout: str, suite_stderr: str,
               keep_long_stdio: bool) -> TestCase:
    """Convert one <testcase> element."""
    class_name = el.get('classname', '')
    name = el.get('name', '')
    reason = ''
    stack_trace = ''
    if (problem := el.find('failure')) is not None:
        result = TestResult.FAIL
    elif (problem := el.find('error')) is not None:
        result = TestResult.ERROR
    elif (problem := el.find('skipped')) is not None:
        result = TestResult.SKIP
    else:
        result = TestResult.PASS
    if problem is not None:
        reason = problem.get('message', '')
        stack_trace = element_text(problem)

    # Output for a test case may be recorded in the case or only for the suite
    stdout = element_text(el.find('system-out')) or suite_stdout
    stderr = element_text(el.find('system-err')) or suite_stderr
    failed = result in FAILED_RESULTS
    return TestCase(class_name, name, result, reason, duration_us(el.get('time')),
                    trim_stdio(stdout, keep_long_stdio, failed),
                    trim_stdio(stderr, keep_long_stdio, failed),
                    stack_trace)


def parse_suite(suite: ET.Element, keep_long_stdio: bool) -> list[TestCase]:
    """Convert a <testsuite> element, including any nested suites."""
    cases = []
    suite_stdout = element_text(suite.find('system-out'))
    suite_stderr = element_text(suite.find('system-err'))
    for child in suite:
        if child.tag == 'testcase':
            cases.append(parse_case(child, suite_stdout, suite_stderr, keep_long_stdio))
        elif child.tag == 'testsuite':
            cases.extend(parse_suite(child, keep_long_stdio))
    return cases


def parse_report(filename: str, keep_long_stdio: bool = False) -> list[TestCase]:
    """Parse a single JUnit XML report file."""
    logging.debug('Parsing %s', filename)
    try:
        root = ET.parse(filename).getroot()
    except ET.ParseError as e:
        raise MalformedReportError(
            f'{messages.BAD_XML.format(filename)}: {e}', filename) from e

    if root.tag not in ROOT_TAGS:
        raise MalformedReportError(
            f'{messages.BAD_XML.format(filename)}: unexpected root element <{root.tag}>',
            filename)
    if root.tag == 'testsuite':
        return parse_suite(root, keep_long_stdio)
    cases = []
    for suite in root:
        if suite.tag == 'testsuite':
            cases.extend(parse_suite(suite, keep_long_stdio))
    return cases


def parse(pattern: str, workspace: str = '.', keep_long_stdio: bool = False,
          build_time: Optional[float] = None) -> TestResultSet:
    """Parse all JUnit reports matching the pattern into one result set.

    If build_time is given, reports last modified before the build started are ignored.
    """
    files = find_reports(pattern, workspace)
    if not files:
        raise NoReportFilesError(messages.NO_REPORTS)
    if build_time is not None:
        files = new_reports(files, build_time)

    cases = []
    for fn in files:
        cases.extend(parse_report(fn, keep_long_stdio))
    logging.debug('Found %d test cases in %d report files', len(cases), len(files))
    return TestResultSet(tuple(cases))


# Debug interface
def main():
    logging.basicConfig(level=logging.DEBUG, format='%(levelno)s %(filename)s: %(message)s',)
    pattern = sys.argv[1] if len(sys.argv) > 1 else config.get('test_results')
    results = parse(pattern)
    summarize.show_totals(results, details=True)


if __name__ == '__main__':
    main()
