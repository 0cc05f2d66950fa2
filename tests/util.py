"""Utility functions used in multiple tests."""

import io
import os
from typing import Iterable, Optional
from unittest.mock import patch
from xml.sax.saxutils import quoteattr

from testquarantine import config
from testquarantine.builddef import BuildListener
from testquarantine.resultdef import QuarantineTestAction, TestCase, TestResultSet
from testquarantine.testcasedef import TestResult


# Directory holding test data files
DATADIR = 'data'


def data_dir() -> str:
    return os.path.join(os.path.dirname(__file__), DATADIR)


def data_file(fn: str) -> str:
    """Return the path to a given test data file."""
    return os.path.join(data_dir(), fn)


def patch_config_get(key: str, value):
    """Mock config.get() to return a specific value for a given key.

    All other keys return the originally-configured value. Multiple items can be overridden by
    calling this more than once, but only one at a time, e.g. in nested with statements.
    """
    def side_effect(k: str):
        return value if k == key else orig_get(k)

    # Use the original (or the previously-patched) get() for unmatched keys
    orig_get = config.get
    return patch('testquarantine.config.get', side_effect=side_effect)


class StringListener(BuildListener):
    """Build listener that collects the build log in memory."""

    def __init__(self):
        super().__init__(io.StringIO())

    def text(self) -> str:
        return self.stream.getvalue()


def make_results(passed: int = 0, failed: int = 0, quarantined: int = 0,
                 skipped: int = 0) -> TestResultSet:
    """Make a result set whose first quarantined failures carry a quarantine flag."""
    cases = ([TestCase('Pass', f'test{i}', TestResult.PASS) for i in range(passed)]
             + [TestCase('Fail', f'test{i}', TestResult.FAIL) for i in range(failed)]
             + [TestCase('Skip', f'test{i}', TestResult.SKIP) for i in range(skipped)])
    results = TestResultSet(tuple(cases))
    flags = {f'Fail.test{i}': [QuarantineTestAction(i < quarantined)] for i in range(failed)}
    return results.with_data([flags])


def write_report(dirname: str, fn: str, outcomes: Iterable[tuple[str, str]],
                 stdout: Optional[str] = None) -> str:
    """Write a JUnit report file holding test cases with the given outcomes.

    outcomes are (full test name, result) with result one of pass, fail, error, skip.
    Returns the path of the file.
    """
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', '<testsuite name="generated">']
    for full_name, result in outcomes:
        class_name, _, name = full_name.rpartition('.')
        lines.append(f'  <testcase classname={quoteattr(class_name)} name={quoteattr(name)}>')
        if result == 'fail':
            lines.append('    <failure message="assertion failed"/>')
        elif result == 'error':
            lines.append('    <error message="exception raised"/>')
        elif result == 'skip':
            lines.append('    <skipped/>')
        if stdout is not None:
            lines.append(f'    <system-out>{stdout}</system-out>')
        lines.append('  </testcase>')
    lines.append('</testsuite>')
    path = os.path.join(dirname, fn)
    with open(path, 'w') as f:
        f.write('\n'.join(lines) + '\n')
    return path
