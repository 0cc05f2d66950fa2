"""Type definitions of the stored quarantine list."""

import datetime
from dataclasses import dataclass

from testquarantine.resultdef import QuarantineTestAction


@dataclass
class QuarantineEntry:
    """Quarantine state of one test as stored in the database."""

    name: str           # full test name
    quarantined: bool   # False once released
    user: str           # who last quarantined or released the test
    reason: str         # why the test was quarantined
    time: int           # when the entry last changed, in seconds since the epoch

    def test_action(self) -> QuarantineTestAction:
        return QuarantineTestAction(
            self.quarantined, self.user, self.reason,
            datetime.datetime.fromtimestamp(self.time, tz=datetime.timezone.utc))
