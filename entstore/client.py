"""SQLAlchemy-backed server and database handles."""

import re
from typing import Any, Dict, List, Optional
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL
from sqlalchemy.pool import QueuePool
from stmt_builder import escape
from stmt_builder.mappings import row_ref_columns
from .config import ConnectionSpec, StoreOptions
import logging

logger = logging.getLogger(__name__)


def _regexp(pattern: Optional[str], value: Any) -> bool:
    """SQLite REGEXP: 'value REGEXP pattern' calls regexp(pattern, value)."""
    if pattern is None or value is None:
        return False
    return re.search(pattern, str(value)) is not None


class SqlAlchemyDatabase:
    """Database handle: one engine (QueuePool) bound to a single database."""
    rid_column = row_ref_columns['default']

    def __init__(self, engine: Engine):
        self.engine = engine

    def ping(self):
        """Open and release one pooled connection."""
        with self.engine.connect():
            pass

    def query(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Run sql and return rows as dicts (empty for statements without rows)."""
        with self.engine.begin() as conn:
            result = conn.execute(text(sql), params or {})
            if not result.returns_rows:
                return []
            return [dict(row) for row in result.mappings().all()]

    def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> int:
        """Run a row-modifying statement and return the affected row count."""
        with self.engine.begin() as conn:
            return conn.execute(text(sql), params or {}).rowcount

    def insert_one(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return the stored record including its generated id."""
        cols = list(fields)
        if cols:
            names = ', '.join(escape(c) for c in cols)
            phs = ', '.join(f':{c}' for c in cols)
            sql = f'INSERT INTO {escape(table)} ({names}) VALUES ({phs})'
        else:
            sql = f'INSERT INTO {escape(table)} DEFAULT VALUES'
        with self.engine.begin() as conn:
            if getattr(self.engine.dialect, 'insert_returning', False):
                return dict(conn.execute(text(sql + ' RETURNING *'), fields).mappings().one())
            result = conn.execute(text(sql), fields)
            sel = f'SELECT * FROM {escape(table)} WHERE {self.rid_column} = :_rid'
            return dict(conn.execute(text(sel), {'_rid': result.lastrowid}).mappings().one())

    def update(self, table: str, fields: Dict[str, Any], rid: Any) -> int:
        """Update the row identified by rid; returns the number of rows changed."""
        if not fields:
            return len(self.query(f'SELECT {self.rid_column} FROM {escape(table)} WHERE {self.rid_column} = :_rid', {'_rid': rid}))
        sets = ', '.join(f'{escape(c)} = :{c}' for c in fields)
        params = dict(fields)
        params['_rid'] = rid
        return self.execute(f'UPDATE {escape(table)} SET {sets} WHERE {self.rid_column} = :_rid', params)

    def delete(self, table: str, rid: Any) -> int:
        """Delete the row identified by rid; returns the number of rows removed."""
        return self.execute(f'DELETE FROM {escape(table)} WHERE {self.rid_column} = :_rid', {'_rid': rid})

    def close(self):
        self.engine.dispose()


class SqlAlchemyServer:
    """Server handle: holds the connection coordinates and the engines handed out by use()."""
    def __init__(self, spec: ConnectionSpec, options: Optional[StoreOptions] = None):
        self.spec = spec
        self.options = options or StoreOptions()
        self._databases: List[SqlAlchemyDatabase] = []

    def url(self, name: Optional[str] = None, username: Optional[str] = None, password: Optional[str] = None) -> URL:
        return URL.create(
            self.spec.scheme,
            username=username or self.spec.username,
            password=password or self.spec.password,
            host=self.spec.host,
            port=self.spec.port,
            database=name or self.spec.name,
        )

    def use(self, name: Optional[str] = None, username: Optional[str] = None, password: Optional[str] = None) -> SqlAlchemyDatabase:
        """Database handle for name, with optional database-level credentials."""
        url = self.url(name, username, password)
        kwargs = dict(echo=self.options.echo, future=True)
        if url.get_backend_name() != 'sqlite' or url.database not in (None, '', ':memory:'):
            kwargs.update(
                poolclass=QueuePool, pool_size=self.options.pool_size,
                pool_timeout=self.options.pool_timeout, pool_recycle=3600
            )
        logger.debug(f'Creating engine for {url.render_as_string(hide_password=True)}')
        engine = create_engine(url, **kwargs)
        if url.get_backend_name() == 'sqlite':
            @event.listens_for(engine, 'connect')
            def _register_regexp(dbapi_conn, conn_record):
                dbapi_conn.create_function('regexp', 2, _regexp)
        db = SqlAlchemyDatabase(engine)
        self._databases.append(db)
        return db

    def close(self):
        """Dispose every engine created through this server."""
        for db in self._databases:
            db.close()
        self._databases.clear()
