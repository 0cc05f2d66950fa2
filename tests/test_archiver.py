"""Test archiver."""

import os
import shutil
import tempfile
import threading
import unittest

from .context import testquarantine  # noqa: F401
from .util import StringListener, data_file, write_report

from testquarantine import db  # noqa: I100
from testquarantine.archiver import QuarantinableResultArchiver
from testquarantine.builddef import Build, BuildStatus, TestResultAction
from testquarantine.publishers import (QuarantineListFilePublisher, QuarantineTestDataPublisher,
                                      TestDataPublisher)
from testquarantine.resultdef import QuarantineTestAction


class NothingPublisher(TestDataPublisher):
    """Publisher with nothing to say."""

    name = 'nothing'

    def get_test_data(self, build, listener, results):
        return None


class QuarantineEverythingPublisher(TestDataPublisher):
    name = 'everything'

    def get_test_data(self, build, listener, results):
        return {c.full_name: [QuarantineTestAction(True)] for c in results.failed_tests}


class TestPerform(unittest.TestCase):
    """Test QuarantinableResultArchiver.perform."""

    def setUp(self):
        super().setUp()
        self.maxDiff = 4000
        self.workspace = tempfile.mkdtemp()
        self.listener = StringListener()

    def tearDown(self):
        shutil.rmtree(self.workspace)
        super().tearDown()

    def write_quarantine_list(self, names):
        with open(os.path.join(self.workspace, 'quarantine.txt'), 'w') as f:
            f.write(''.join(n + '\n' for n in names))

    def archive(self, publishers=None, build=None, pattern='TEST-*.xml') -> Build:
        if build is None:
            build = Build(self.workspace, environment={})
        archiver = QuarantinableResultArchiver(pattern, False, publishers)
        self.assertTrue(archiver.perform(build, self.listener))
        return build

    def test_success(self):
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'pass'), ('a.A.two', 'pass')])
        build = self.archive()
        self.assertIsNone(build.result)
        self.assertEqual('Recording test results\n', self.listener.text())
        action = build.get_action(TestResultAction)
        self.assertEqual(2, action.result.pass_count)
        self.assertIs(action, build.archived.result(timeout=0))

    def test_unstable(self):
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'fail'), ('a.A.two', 'error'),
                                                    ('a.A.three', 'pass')])
        build = self.archive([NothingPublisher()])
        self.assertEqual(BuildStatus.UNSTABLE, build.result)
        self.assertEqual('Recording test results\n'
                         '[Quarantine]: 2 unquarantined failures remaining\n',
                         self.listener.text())

    def test_all_quarantined(self):
        write_report(self.workspace, 'TEST-a.xml', [(f'a.A.t{i}', 'fail') for i in range(10)])
        self.write_quarantine_list([f'a.A.t{i}' for i in range(10)])
        build = self.archive([QuarantineListFilePublisher('quarantine.txt')])
        self.assertIsNone(build.result)
        self.assertIn('[Quarantine]: a.A.t9 failed but is quarantined\n', self.listener.text())
        self.assertIn('[Quarantine]: 0 unquarantined failures remaining\n', self.listener.text())

    def test_some_quarantined(self):
        write_report(self.workspace, 'TEST-a.xml', [(f'a.A.t{i}', 'fail') for i in range(10)])
        self.write_quarantine_list(['a.A.t1', 'a.A.t4', 'a.A.t7'])
        build = self.archive([QuarantineListFilePublisher('quarantine.txt')])
        self.assertEqual(BuildStatus.UNSTABLE, build.result)
        self.assertEqual('Recording test results\n'
                         '[Quarantine]: a.A.t1 failed but is quarantined\n'
                         '[Quarantine]: a.A.t4 failed but is quarantined\n'
                         '[Quarantine]: a.A.t7 failed but is quarantined\n'
                         '[Quarantine]: 7 unquarantined failures remaining\n',
                         self.listener.text())

    def test_unstable_upstream(self):
        # Quarantine cannot make a build better than it already is
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'fail')])
        build = Build(self.workspace, environment={})
        build.set_result(BuildStatus.UNSTABLE)
        self.archive([QuarantineEverythingPublisher()], build)
        self.assertEqual(BuildStatus.UNSTABLE, build.result)
        self.assertIn('0 unquarantined failures remaining', self.listener.text())

    def test_empty(self):
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'skip')])
        build = self.archive()
        self.assertEqual(BuildStatus.FAILURE, build.result)
        self.assertEqual('Recording test results\n'
                         'None of the test reports contained any result\n',
                         self.listener.text())
        self.assertIsNone(build.get_action(TestResultAction))

    def test_empty_already_failed(self):
        write_report(self.workspace, 'TEST-a.xml', [])
        build = Build(self.workspace, environment={})
        build.set_result(BuildStatus.FAILURE)
        self.archive(build=build)
        self.assertEqual(BuildStatus.FAILURE, build.result)
        self.assertEqual('Recording test results\n', self.listener.text())

    def test_no_reports(self):
        build = self.archive()
        self.assertEqual(BuildStatus.FAILURE, build.result)
        self.assertEqual('Recording test results\n'
                         'No test report files were found. Configuration error?\n',
                         self.listener.text())

    def test_no_reports_already_failed(self):
        build = Build(self.workspace, environment={})
        build.set_result(BuildStatus.FAILURE)
        self.archive(build=build)
        self.assertEqual('Recording test results\n', self.listener.text())

    def test_malformed(self):
        shutil.copy(data_file('junit_malformed.xml'), os.path.join(self.workspace, 'TEST-bad.xml'))
        build = self.archive()
        self.assertEqual(BuildStatus.FAILURE, build.result)
        log = self.listener.text()
        self.assertTrue(log.startswith('Recording test results\n'
                                       'ERROR: Failed to archive test reports\n'))
        self.assertIn('Traceback', log)
        self.assertEqual(1, log.count('Incorrect XML attributes for test results found in'))
        self.assertNotIn('unquarantined', log)

    def test_missing_quarantine_list(self):
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'fail')])
        build = self.archive([QuarantineListFilePublisher('missing.txt')])
        self.assertEqual(BuildStatus.FAILURE, build.result)
        self.assertIn('ERROR: Failed to archive test reports\n', self.listener.text())
        self.assertIn('FileNotFoundError', self.listener.text())
        self.assertTrue(build.archived.done())

    def test_expand_pattern(self):
        os.mkdir(os.path.join(self.workspace, 'out'))
        write_report(os.path.join(self.workspace, 'out'), 'TEST-a.xml', [('a.A.one', 'pass')])
        build = Build(self.workspace, environment={'REPORT_DIR': 'out'})
        self.archive(build=build, pattern='${REPORT_DIR}/TEST-*.xml')
        self.assertIsNone(build.result)
        self.assertEqual(1, build.get_action(TestResultAction).result.pass_count)

    def test_waits_for_previous_build(self):
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'fail')])
        previous = Build(self.workspace, number=1, environment={})
        build = Build(self.workspace, number=2, environment={}, previous_build=previous)
        archiver = QuarantinableResultArchiver('TEST-*.xml')
        thread = threading.Thread(target=archiver.perform, args=(build, self.listener))
        thread.start()
        thread.join(0.2)
        self.assertTrue(thread.is_alive())
        self.assertEqual([], build.actions)
        self.assertIsNone(build.result)

        previous.archived.set_result(None)
        thread.join(10)
        self.assertFalse(thread.is_alive())
        self.assertIsNotNone(build.get_action(TestResultAction))
        self.assertEqual(BuildStatus.UNSTABLE, build.result)

    def test_failed_build_does_not_block_next(self):
        previous = self.archive()
        self.assertEqual(BuildStatus.FAILURE, previous.result)
        self.assertTrue(previous.archived.done())
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'pass')])
        build = self.archive(build=Build(self.workspace, number=2, environment={},
                                         previous_build=previous))
        self.assertIsNone(build.result)

    def test_database_then_list_file(self):
        # The empty database says nothing is quarantined but the list file quarantines a.A.one
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'fail'), ('a.A.two', 'pass')])
        self.write_quarantine_list(['a.A.one'])
        build = self.archive([QuarantineTestDataPublisher(os.path.join(self.workspace, 'q.db')),
                              QuarantineListFilePublisher('quarantine.txt')])
        self.assertIsNone(build.result)
        self.assertEqual('Recording test results\n'
                         '[Quarantine]: a.A.one failed but is quarantined\n'
                         '[Quarantine]: 0 unquarantined failures remaining\n',
                         self.listener.text())

    def test_list_file_then_database(self):
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'fail'), ('a.A.two', 'fail')])
        self.write_quarantine_list(['a.A.one'])
        dbpath = os.path.join(self.workspace, 'q.db')
        with db.Datastore(dbpath) as ds:
            ds.quarantine('a.A.two', 'alice', 'flaky')
        build = self.archive([QuarantineListFilePublisher('quarantine.txt'),
                              NothingPublisher(),
                              QuarantineTestDataPublisher(dbpath)])
        self.assertIsNone(build.result)
        self.assertIn('[Quarantine]: 0 unquarantined failures remaining\n', self.listener.text())

    def test_released_in_database_still_listed(self):
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'fail')])
        self.write_quarantine_list(['a.A.one'])
        dbpath = os.path.join(self.workspace, 'q.db')
        with db.Datastore(dbpath) as ds:
            ds.quarantine('a.A.one')
            ds.release('a.A.one')
        build = self.archive([QuarantineListFilePublisher('quarantine.txt'),
                              QuarantineTestDataPublisher(dbpath)])
        self.assertIsNone(build.result)

    def test_quarantine_list_not_utf8(self):
        write_report(self.workspace, 'TEST-a.xml', [('a.A.one', 'fail')])
        with open(os.path.join(self.workspace, 'quarantine.txt'), 'wb') as f:
            f.write(b'a.A.one \xff\xfe')
        build = self.archive([QuarantineListFilePublisher('quarantine.txt')])
        self.assertEqual(BuildStatus.FAILURE, build.result)
        log = self.listener.text()
        self.assertTrue(log.startswith('Recording test results\n'
                                       'ERROR: Failed to archive test reports\n'))
        self.assertIn('is not valid UTF-8', log)
        self.assertTrue(build.archived.done())

    def test_infinite_time(self):
        with open(os.path.join(self.workspace, 'TEST-a.xml'), 'w') as f:
            f.write('<testsuite name="a" tests="2">'
                    '<testcase classname="a" name="b" time="inf"/>'
                    '<testcase classname="a" name="c" time="nan"><failure/></testcase>'
                    '</testsuite>')
        build = self.archive()
        self.assertEqual(BuildStatus.UNSTABLE, build.result)
        cases = build.get_action(TestResultAction).result.cases
        self.assertEqual([0, 0], [c.duration for c in cases])
