"""Model of the build that test results are archived for."""

import concurrent.futures
import logging
import os
import string
import sys
import time
from enum import IntEnum
from typing import Any, Optional, TextIO

from testquarantine.resultdef import TestResultSet


class BuildStatus(IntEnum):
    """Overall result of a build, in increasing order of severity."""

    SUCCESS = 0
    UNSTABLE = 1
    FAILURE = 2


class BuildListener:
    """Sink for the build log as shown to the user of the CI system."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout

    def println(self, msg: str):
        print(msg, file=self.stream)

    def error(self, msg: str) -> TextIO:
        """Write an error line and return the stream so more detail can follow."""
        self.println(f'ERROR: {msg}')
        return self.stream


class TestResultAction:
    """Record of the archived test results, attached to the build."""
    __test__ = False

    def __init__(self, build: 'Build', result: TestResultSet):
        self.build = build
        self.result = result


class Build:
    """One execution of a job.

    result starts as None (nothing has gone wrong yet) and can only be made worse.
    archived is resolved once this build's archiver has recorded its results, so that
    the archiver of a following build can wait for it.
    """

    def __init__(self, workspace: str = '.', number: int = 1,
                 environment: Optional[dict[str, str]] = None,
                 start_time: Optional[float] = None,
                 previous_build: Optional['Build'] = None):
        self.workspace = workspace
        self.number = number
        self.environment = dict(os.environ) if environment is None else environment
        self.start_time = time.time() if start_time is None else start_time
        self.previous_build = previous_build
        self.result = None  # type: Optional[BuildStatus]
        self.actions = []   # type: list[Any]
        self.archived = concurrent.futures.Future()  # type: concurrent.futures.Future

    def set_result(self, status: BuildStatus):
        if self.result is not None and status <= self.result:
            logging.debug('Not changing build %d result %s to %s',
                          self.number, self.result.name, status.name)
            return
        logging.debug('Build %d result is now %s', self.number, status.name)
        self.result = status

    def expand(self, s: str) -> str:
        """Expand $VAR and ${VAR} references from the build environment.

        Unknown variables are left as-is.
        """
        return string.Template(s).safe_substitute(self.environment)

    def get_action(self, cls: type) -> Optional[Any]:
        for action in self.actions:
            if isinstance(action, cls):
                return action
        return None
