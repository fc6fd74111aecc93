"""Audit logging of executed statements."""

import sqlite3
import logging
import functools
import inspect
from threading import Lock
from typing import Optional

logger = logging.getLogger(__name__)


class Audit:
    """Manages audit logging to an SQLite database."""
    def __init__(self, db: str = 'audit.db'):
        self.db = db
        self.lock = Lock()
        self._init()

    def _init(self):
        """Initialize audit table."""
        with self.lock, sqlite3.connect(self.db) as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS audit (
                    id INTEGER PRIMARY KEY,
                    ts TEXT DEFAULT CURRENT_TIMESTAMP,
                    fn TEXT,
                    sql TEXT,
                    params TEXT,
                    ok INTEGER,
                    err TEXT,
                    caller_module TEXT
                )
            ''')

    def log(self, fn: str, sql: str, params: str, ok: bool, err: Optional[str], caller_module: str):
        """Log an operation to the audit table."""
        with self.lock, sqlite3.connect(self.db) as conn:
            conn.execute('''
                INSERT INTO audit (fn, sql, params, ok, err, caller_module)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (fn, sql, params, int(ok), err, caller_module))

    def entries(self):
        """All audit rows, oldest first."""
        with self.lock, sqlite3.connect(self.db) as conn:
            conn.row_factory = sqlite3.Row
            return [dict(r) for r in conn.execute('SELECT * FROM audit ORDER BY id')]


def audited(fn):
    """Decorator recording each statement an executor method runs, when auditing is on."""
    @functools.wraps(fn)
    def wrapper(self, statement, *args, **kwargs):
        if not self.audit:
            return fn(self, statement, *args, **kwargs)
        sql = str(getattr(statement, 'text', statement) or '')
        params = str(getattr(statement, 'values', ''))[:1000]
        module = inspect.getmodule(inspect.currentframe().f_back)
        caller_module = module.__name__ if module else '__main__'
        try:
            result = fn(self, statement, *args, **kwargs)
        except Exception as e:
            self.audit_obj.log(fn.__name__, sql, params, False, str(e), caller_module)
            raise
        self.audit_obj.log(fn.__name__, sql, params, True, None, caller_module)
        return result
    return wrapper
