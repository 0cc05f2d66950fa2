"""Archives the JUnit test results in a workspace and reports the build status.

The build log is written to stdout. The exit code is 0 if the build succeeded, 1 if it is
unstable because of unquarantined test failures and 2 if it failed.
"""

import argparse
import json
import logging
import sys
import time
from typing import Optional

from testquarantine import argparsing
from testquarantine import config
from testquarantine import descriptor
from testquarantine import log
from testquarantine import messages
from testquarantine import publishers
from testquarantine.archiver import QuarantinableResultArchiver
from testquarantine.builddef import Build, BuildListener, BuildStatus
from testquarantine.errors import FormError


EXIT_CODES = {
    BuildStatus.SUCCESS: 0,
    BuildStatus.UNSTABLE: 1,
    BuildStatus.FAILURE: 2,
}


def parse_args(args=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Archive JUnit test results, ignoring failures of quarantined tests')
    argparsing.arguments_logging(parser)
    argparsing.arguments_config(parser)
    argparsing.arguments_database(parser)
    parser.add_argument(
        '--test-results',
        help='Glob pattern of JUnit XML files, relative to the workspace '
             '(default from the test_results config value)')
    parser.add_argument(
        '--keep-long-stdio',
        action='store_true',
        default=None,
        help='Keep the full output of passing tests')
    parser.add_argument(
        '--publisher',
        action='append',
        help='Test data publisher to run; use once per publisher '
             '(default from the test_data_publishers config value)')
    parser.add_argument(
        '--job-config',
        type=argparse.FileType('r'),
        help='JSON file holding the archiver configuration; overrides the options above')
    parser.add_argument(
        '--workspace',
        default='.',
        help='Directory holding the build workspace')
    parser.add_argument(
        '--previous-result',
        type=argparsing.build_status,
        help='Result of the build stages that ran before this one')
    parser.add_argument(
        '--since-start',
        type=float,
        help='Ignore report files older than this many seconds')
    return parser.parse_args(args=args)


def archiver_from_args(args: argparse.Namespace) -> QuarantinableResultArchiver:
    if args.job_config:
        with args.job_config:
            form_data = json.load(args.job_config)
        return descriptor.find(messages.DISPLAY_NAME).new_instance(form_data)

    pattern = args.test_results or config.get('test_results')
    keep_long_stdio = (args.keep_long_stdio if args.keep_long_stdio is not None
                       else config.get('keep_long_stdio'))
    names = args.publisher if args.publisher else config.get('test_data_publishers')
    settings = {'databasePath': args.database} if args.database else {}
    return QuarantinableResultArchiver(
        pattern, keep_long_stdio,
        [publishers.create(n, settings if n == 'quarantine' else None) for n in names])


def run(args: argparse.Namespace, listener: Optional[BuildListener] = None) -> BuildStatus:
    """Archive the results of one build, returning its final status."""
    archiver = archiver_from_args(args)
    start_time = time.time() - args.since_start if args.since_start is not None else 0.0
    build = Build(args.workspace, start_time=start_time)
    if args.previous_result is not None:
        build.set_result(args.previous_result)

    archiver.perform(build, listener or BuildListener())
    return build.result if build.result is not None else BuildStatus.SUCCESS


def main():
    args = parse_args()
    log.setup(args)

    try:
        status = run(args)
    except (FormError, json.JSONDecodeError) as e:
        logging.error('Invalid job configuration: %s', e)
        sys.exit(2)
    logging.info('Build result is %s', status.name)
    sys.exit(EXIT_CODES[status])


if __name__ == '__main__':
    main()
