"""Diagnostic logging setup

This is separate from the build log, which is what the CI user sees.
"""

import argparse
import bisect
import logging
import os
import shlex
import sys
from typing import Optional


# Upper bounds of logging levels and the matching syslog priorities
# Nothing maps to syslog level 5 (KERN_NOTICE)
_LEVEL_BOUNDS = [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL]
_SYSLOG_PRIORITIES = [7, 6, 4, 3, 2]


def calling_program() -> str:
    "Return the name of the program that started us"
    return os.path.basename(sys.argv[0])


def logging_level_to_syslog(level: int) -> int:
    "Converts a logging level into a syslog-compatible priority"
    i = bisect.bisect_left(_LEVEL_BOUNDS, level)
    if i >= len(_SYSLOG_PRIORITIES):
        return 1  # KERN_ALERT
    return _SYSLOG_PRIORITIES[i]


class SyslogFormatter(logging.Formatter):
    "Prefixes log messages with the syslog priority in angle brackets"

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        return f'<{logging_level_to_syslog(record.levelno)}>' + super().format(record)


def setup(args: argparse.Namespace, program: Optional[str] = None):
    """Set up the logging subsystem from the command-line logging options.

    program defaults to the program invoking this run.
    """
    if not program:
        program = shlex.quote(calling_program())
    # Escape percents to pass through format()
    program = program.replace('%', '%%')
    if args.debug:
        level, fmt = logging.DEBUG, program + ' %(levelno)s %(filename)s: %(message)s'
    elif args.verbose:
        level, fmt = logging.INFO, program + ' %(filename)s: %(message)s'
    else:
        level, fmt = logging.WARNING, '%(filename)s: %(message)s'
    # Diagnostics go to stderr so they don't mix with the build log on stdout
    logging.basicConfig(level=level, format=fmt, stream=sys.stderr)
    if args.level_prefix:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(SyslogFormatter(fmt))
