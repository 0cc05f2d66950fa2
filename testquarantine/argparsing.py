"""Functions to set up common argument parsers."""

import argparse
import ast

from testquarantine import config
from testquarantine.builddef import BuildStatus


class StoreMultipleConstAction(argparse.Action):
    """Store the value of the const to multiple attributes.

    const holds the value to store (defaults to True) and attrs is an iterable
    of attribute names to store the value, in addition to dest.
    """

    def __init__(self, option_strings, dest: str, const: bool = True, attrs=None,
                 default=None, required: bool = False, help=None):  # noqa: A002
        super().__init__(option_strings=option_strings, dest=dest, nargs=0, const=const,
                         default=default, required=required, help=help)
        self.attrs = attrs if attrs else []

    def __call__(self, parser, namespace, values, option_string=None):
        for attr in [self.dest, *self.attrs]:
            setattr(namespace, attr, self.const)


class OverrideConfigAction(argparse.Action):
    """argparsing action that adds a configuration override."""
    def __init__(self, option_strings, dest: str, default=None, required: bool = False,
                 help=None):  # noqa: A002
        super().__init__(option_strings=option_strings, dest=dest, nargs=1, default=default,
                         required=required, metavar='NAME=VALUE', help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        for assignment in values:
            name, sep, rawval = assignment.partition('=')
            if not sep:
                raise argparse.ArgumentTypeError(f'Missing = in {assignment}')
            # Let any exceptions through here since they provide detail about the problem
            config.add_override(name, ast.literal_eval(rawval) if rawval else '')


def build_status(name: str) -> BuildStatus:
    """argparsing type converting a build status name."""
    try:
        return BuildStatus[name.upper()]
    except KeyError as e:
        raise argparse.ArgumentTypeError(f'Unknown build status {name}') from e


def arguments_config(parser: argparse.ArgumentParser):
    """Add arguments needed for manipulating the configuration."""
    parser.add_argument(
        '--set',
        action=OverrideConfigAction,
        help='Override a config value')


def arguments_logging(parser: argparse.ArgumentParser):
    """Add arguments needed for logging."""
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show more log messages')
    parser.add_argument(
        '--debug',
        action=StoreMultipleConstAction,
        attrs=['verbose'],
        help='Show debug level log messages')
    parser.add_argument(
        '--level-prefix',
        action='store_true',
        help='Include syslog priority level in log message as <N> prefix')


def arguments_database(parser: argparse.ArgumentParser):
    """Add arguments needed for finding the quarantine database."""
    parser.add_argument(
        '--database',
        help='Path to the quarantine database (default from the database_path config value)')
