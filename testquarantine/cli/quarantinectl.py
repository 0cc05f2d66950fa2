"""Manages the list of quarantined tests."""

import argparse
import getpass
import sys

from testquarantine import argparsing
from testquarantine import db
from testquarantine import log
from testquarantine import summarize


def parse_args(args=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Quarantine known-flaky tests so their failures do not fail the build')
    argparsing.arguments_logging(parser)
    argparsing.arguments_config(parser)
    argparsing.arguments_database(parser)
    subparsers = parser.add_subparsers(dest='command', required=True)

    add = subparsers.add_parser('add', help='Put tests into quarantine')
    add.add_argument('names', nargs='+', help='Full names of the tests')
    add.add_argument('--reason', default='', help='Why the tests are quarantined')
    add.add_argument('--user', help='Who is quarantining the tests (default: login name)')

    release = subparsers.add_parser('release', help='Release tests from quarantine')
    release.add_argument('names', nargs='+', help='Full names of the tests')
    release.add_argument('--user', help='Who is releasing the tests (default: login name)')

    show = subparsers.add_parser('list', help='Show quarantined tests')
    show.add_argument('--all', action='store_true', help='Include released tests')
    return parser.parse_args(args=args)


def run(args: argparse.Namespace) -> int:
    """Perform the command, returning the exit code."""
    rc = 0
    with db.Datastore(args.database) as ds:
        if args.command == 'add':
            user = args.user or getpass.getuser()
            for name in args.names:
                ds.quarantine(name, user, args.reason)

        elif args.command == 'release':
            user = args.user or getpass.getuser()
            for name in args.names:
                if not ds.release(name, user):
                    rc = 1

        else:  # list
            entries = ds.select_all() if args.all else ds.select_quarantined()
            for line in summarize.quarantine_report(entries):
                print(line)
    return rc


def main():
    args = parse_args()
    log.setup(args)
    sys.exit(run(args))


if __name__ == '__main__':
    main()
