"""Type definitions of parsed test results."""

import dataclasses
import datetime
import types
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from testquarantine.testcasedef import FAILED_RESULTS, TestResult


@dataclass(frozen=True)
class TestCase:
    """Class to hold the result of a single run of a single test."""
    __test__ = False

    class_name: str     # class or suite holding the test (may be empty)
    name: str           # test name within the class
    result: TestResult  # test result
    reason: str = ''    # reason for result (if any)
    duration: int = 0   # test duration in microseconds
    stdout: str = ''
    stderr: str = ''
    stack_trace: str = ''

    @property
    def full_name(self) -> str:
        """The identity of the test across builds."""
        if self.class_name:
            return f'{self.class_name}.{self.name}'
        return self.name

    @property
    def failed(self) -> bool:
        return self.result in FAILED_RESULTS


@dataclass(frozen=True)
class QuarantineTestAction:
    """Quarantine flag attached to a test case by a test data publisher."""

    quarantined: bool
    user: str = ''
    reason: str = ''
    date: Optional[datetime.datetime] = None


# Test data attached by one publisher: test full name -> actions
TestData = Mapping[str, list[Any]]


@dataclass(frozen=True)
class TestResultSet:
    """All test case outcomes for one build, with any attached test data.

    Instances are never modified; with_data() returns a new set.
    """
    __test__ = False

    cases: tuple[TestCase, ...] = ()
    test_data: Mapping[str, tuple[Any, ...]] = dataclasses.field(
        default_factory=lambda: types.MappingProxyType({}))

    @property
    def pass_count(self) -> int:
        return len([1 for c in self.cases if c.result == TestResult.PASS])

    @property
    def fail_count(self) -> int:
        return len([1 for c in self.cases if c.failed])

    @property
    def skip_count(self) -> int:
        return len([1 for c in self.cases if c.result == TestResult.SKIP])

    @property
    def failed_tests(self) -> list[TestCase]:
        return [c for c in self.cases if c.failed]

    def with_data(self, data: Iterable[TestData]) -> 'TestResultSet':
        """Return a copy of this set with the actions of each publisher's data attached.

        Actions are appended in publisher order after any already attached.
        """
        merged = {name: list(actions) for name, actions in self.test_data.items()}
        for d in data:
            for name, actions in d.items():
                merged.setdefault(name, []).extend(actions)
        frozen = types.MappingProxyType({name: tuple(actions) for name, actions in merged.items()})
        return dataclasses.replace(self, test_data=frozen)

    def test_actions(self, case: TestCase) -> tuple[Any, ...]:
        return self.test_data.get(case.full_name, ())

    def quarantine_flag(self, case: TestCase) -> Optional[bool]:
        """Return whether the case is quarantined, or None if no publisher said.

        The case is quarantined if any publisher quarantined it.
        """
        flags = [a.quarantined for a in self.test_actions(case)
                 if isinstance(a, QuarantineTestAction)]
        if not flags:
            return None
        return any(flags)
