"""Database operations on the quarantine list
"""


import datetime
import logging
import sqlite3
from typing import List, Optional

from testquarantine import config
from testquarantine.quarantinedef import QuarantineEntry


# Timeout for database writes. Needed to turn a concurrent write error into a retry.
DB_TIMEOUT = 600

# Make this available transparently to users
DatabaseError = sqlite3.Error


class Datastore:
    """The quarantine database.

    Use as a context manager to connect and close automatically.
    """

    def __init__(self, filename: Optional[str] = None):
        if not filename:
            filename = config.expand('database_path')
        self.filename = filename
        self.db = None   # type: Optional[sqlite3.Connection]
        self.cur = None  # type: Optional[sqlite3.Cursor]

    def __enter__(self) -> 'Datastore':
        self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def connect(self):
        """Opens an existing DB or creates a new one"""
        try:
            self.db = sqlite3.connect(self.filename, timeout=DB_TIMEOUT)
        except sqlite3.OperationalError:
            logging.error(f'Cannot open or create database (permission? missing dir?): {self.filename}')
            raise

        self.cur = self.db.cursor()
        try:
            # See if table exists
            self.cur.execute("SELECT 1 FROM quarantine LIMIT 1")
        except sqlite3.OperationalError:
            self.create_new_db()

    def close(self):
        self.cur.close()
        self.db.close()

    def create_new_db(self):
        logging.info("Creating new database %s", self.filename)
        # One per test ever quarantined
        # quarantined is 1 while in quarantine, 0 once released
        # time is when the row last changed
        self.cur.execute("CREATE TABLE quarantine (name TEXT NOT NULL PRIMARY KEY, "
                         "quarantined INTEGER NOT NULL, user TEXT NOT NULL, "
                         "reason TEXT NOT NULL, time INTEGER NOT NULL)")
        self.cur.execute("CREATE INDEX quarantine_index ON quarantine (quarantined)")
        self.db.commit()

    def _store(self, name: str, quarantined: bool, user: str, reason: str):
        now = int(datetime.datetime.now().timestamp())
        self.cur.execute("INSERT INTO quarantine (name, quarantined, user, reason, time) "
                         "VALUES (?, ?, ?, ?, ?) ON CONFLICT(name) DO UPDATE SET "
                         "quarantined=excluded.quarantined, user=excluded.user, "
                         "reason=excluded.reason, time=excluded.time",
                         (name, int(quarantined), user, reason, now))
        self.db.commit()

    def quarantine(self, name: str, user: str = '', reason: str = ''):
        "Put a test into quarantine, replacing any earlier entry"
        logging.info('Quarantining %s', name)
        self._store(name, True, user, reason)

    def release(self, name: str, user: str = '') -> bool:
        """Release a test from quarantine.

        The original reason is kept for reference. Returns False if the test was not
        quarantined.
        """
        entry = self.select_entry(name)
        if not entry or not entry.quarantined:
            logging.warning('%s is not quarantined', name)
            return False
        logging.info('Releasing %s', name)
        self._store(name, False, user, entry.reason)
        return True

    def _collect_rows(self, rows: sqlite3.Cursor) -> List[QuarantineEntry]:
        results = []
        while batch := rows.fetchmany():
            for name, quarantined, user, reason, t in batch:
                results.append(QuarantineEntry(name, bool(quarantined), user, reason, t))
        return results

    def select_entry(self, name: str) -> Optional[QuarantineEntry]:
        "Returns the entry for one test, if it was ever quarantined"
        rows = self._collect_rows(self.cur.execute(
            "SELECT name, quarantined, user, reason, time FROM quarantine WHERE name = ?",
            (name,)))
        return rows[0] if rows else None

    def select_all(self) -> List[QuarantineEntry]:
        "Returns all entries, including released ones"
        return self._collect_rows(self.cur.execute(
            "SELECT name, quarantined, user, reason, time FROM quarantine ORDER BY name"))

    def select_quarantined(self) -> List[QuarantineEntry]:
        "Returns the entries of tests currently in quarantine"
        return self._collect_rows(self.cur.execute(
            "SELECT name, quarantined, user, reason, time FROM quarantine "
            "WHERE quarantined = 1 ORDER BY name"))
