"""Statement execution against the managed connection."""

from typing import Any, Callable, Dict, List, Optional
from .audit import Audit, audited
from .conn import ConnectionManager
from .errors import ConnectionLostError, EmptyQueryError, StoreError, TransportError, classify
import logging

logger = logging.getLogger(__name__)


class QueryExecutor:
    """Runs statements on the manager's database handle and classifies failures.

    Failed operations are never retried here. A connection-loss failure starts
    the manager's reconnection loop for later operations and is still raised.
    Any exception raised by the database handle counts as a transport failure,
    whatever client library it comes from.
    """
    def __init__(self, manager: ConnectionManager, debug: bool = False, audit_db: Optional[str] = None):
        self.manager = manager
        self.debug = debug
        self.audit = bool(audit_db)
        self.audit_obj = Audit(audit_db) if audit_db else None

    def _log(self, sql: str, params: Any):
        """Log SQL and params if debug enabled."""
        if self.debug:
            logger.debug(f'SQL: {sql} | Params: {params}')

    def _fail(self, err: BaseException, statement: Any) -> TransportError:
        out = classify(err, statement)
        logger.error(f'Query failed: {err} | Statement: {statement}', exc_info=err)
        if isinstance(out, ConnectionLostError):
            self.manager.connection_lost()
        return out

    def _run(self, statement: Any, call: Callable[[Any], Any]) -> Any:
        try:
            return call(self.manager.database())
        except StoreError as e:
            logger.error(f'Query failed: {e} | Statement: {statement}', exc_info=e)
            raise
        except Exception as e:
            raise self._fail(e, statement) from e

    def _check(self, statement):
        if statement is None or not statement.text:
            logger.error(f'An empty query is not a valid query: {statement!r}')
            raise EmptyQueryError()
        self._log(statement.text, statement.values)

    @audited
    def execute(self, statement) -> List[Dict[str, Any]]:
        """Run a select-style statement and return its rows."""
        self._check(statement)
        if statement.values:
            rows = self._run(statement, lambda db: db.query(statement.text, statement.values))
        else:
            rows = self._run(statement, lambda db: db.query(statement.text))
        return list(rows or [])

    @audited
    def execute_count(self, statement) -> int:
        """Run a row-modifying statement and return the affected row count."""
        self._check(statement)
        return self._run(statement, lambda db: db.execute(statement.text, statement.values or None))

    @audited
    def insert(self, statement) -> Dict[str, Any]:
        """Insert and return the generated record."""
        self._log(f'insert into {statement.table}', statement.fields)
        return dict(self._run(statement, lambda db: db.insert_one(statement.table, statement.fields)))

    @audited
    def update(self, statement) -> int:
        self._log(f'update {statement.table} rid={statement.rid}', statement.fields)
        return self._run(statement, lambda db: db.update(statement.table, statement.fields, statement.rid))

    @audited
    def delete(self, statement) -> int:
        self._log(f'delete from {statement.table} rid={statement.rid}', None)
        return self._run(statement, lambda db: db.delete(statement.table, statement.rid))
