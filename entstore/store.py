"""Entity store: save/load/list/remove over the statement builder and executor."""

import pandas as pd
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from stmt_builder import StatementBuilder, from_template
from stmt_builder.mappings import identity_field, row_ref_columns
from . import entity as default_entity
from .config import StoreOptions, parse_spec
from .conn import ConnectionManager, ServerFactory
from .errors import NoCandidateError
from .executor import QueryExecutor
from .rows import map_row
import logging

logger = logging.getLogger(__name__)


class EntityStore:
    """Store contract for schema-less entities backed by a SQL-speaking database."""
    name = 'entstore'

    def __init__(
        self, spec: Union[str, Mapping[str, Any], None] = None,
        options: Union[StoreOptions, Mapping[str, Any], None] = None,
        dialect: Optional[str] = None, server_factory: Optional[ServerFactory] = None,
        tablename: Callable = default_entity.tablename, makeentp: Callable = default_entity.makeentp,
        makeent: Callable = default_entity.makeent, fixquery: Callable = default_entity.fixquery
    ):
        self.options = options if isinstance(options, StoreOptions) else StoreOptions.from_mapping(options)
        if dialect is None:
            dialect = parse_spec(spec).scheme.split('+')[0] if spec is not None else 'default'
        self.dialect = dialect.lower()
        self.manager = ConnectionManager(self.options, server_factory)
        self.builder = StatementBuilder(tablename, makeentp, fixquery, self.dialect)
        self.executor = QueryExecutor(self.manager, debug=self.options.debug, audit_db=self.options.audit_db)
        self.makeent = makeent
        rid = self.builder.rid_column
        self._rid_column = rid if rid != row_ref_columns['default'] else None
        if spec is not None:
            self.configure(spec)

    def configure(self, spec: Union[str, Mapping[str, Any], None] = None):
        self.manager.configure(spec)

    def _ent(self, qent, row: Mapping[str, Any]):
        return self.makeent(qent, map_row(row, self._rid_column))

    def save(self, ent):
        """Insert ent, or update it by row reference when it has an id."""
        if ent.get(identity_field) is not None:
            stm = self.builder.update(ent)
            if not self.executor.update(stm):
                logger.warning(f'save: no row {stm.rid} in {stm.table}')
                raise NoCandidateError(f'no candidate for update: {stm.table} {stm.rid}')
            logger.debug(f'save {stm.table} {stm.rid} updated')
            return ent
        stm = self.builder.insert(ent)
        saved = self._ent(ent, self.executor.insert(stm))
        logger.debug(f'save {saved!r}')
        return saved

    def load(self, qent, q: Optional[Dict[str, Any]] = None):
        """First entity matching q, or None."""
        rows = self.executor.execute(self.builder.select(qent, q or {}))
        ent = self._ent(qent, rows[0]) if rows else None
        logger.debug(f'load {ent!r}')
        return ent

    def list(self, qent, q: Optional[Dict[str, Any]] = None) -> List[Any]:
        """Entities matching q (distinct$, ids or plain filters)."""
        q = q or {}
        if q.get('distinct$'):
            stm = self.builder.select_distinct(qent, q)
        elif q.get('ids') is not None:
            if not q['ids']:
                return []
            stm = self.builder.select_or(qent, q)
        else:
            stm = self.builder.select(qent, q)
        out = [self._ent(qent, row) for row in self.executor.execute(stm)]
        logger.debug(f'list {len(out)} {out[0] if out else None!r}')
        return out

    def list_raw(self, qent, template: str, *params: Any) -> List[Any]:
        """Entities from a raw statement with '?' placeholders bound to params in order."""
        stm = from_template(template, params)
        return [self._ent(qent, row) for row in self.executor.execute(stm)]

    def list_df(self, qent, q: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
        """list() as a DataFrame, one column per entity field."""
        return pd.DataFrame([dict(ent) for ent in self.list(qent, q)])

    def remove(self, qent, q: Optional[Dict[str, Any]] = None) -> int:
        """Remove by id, every match (all$), or the first match; returns the count removed."""
        q = q or {}
        if q.get(identity_field) is not None:
            count = self.executor.delete(self.builder.delete(qent, q))
        elif q.get('all$'):
            count = self.executor.execute_count(self.builder.delete_matching(qent, q))
        else:
            rows = self.executor.execute(self.builder.select(qent, dict(q, **{'limit$': 1})))
            if not rows:
                count = 0
            else:
                rid = map_row(rows[0], self._rid_column).get(identity_field)
                count = self.executor.delete(self.builder.delete(qent, {identity_field: rid}))
        if not count:
            logger.warning(f'remove: no candidate in {self.builder.tablename(qent)} for {q}')
            raise NoCandidateError()
        logger.debug(f'remove {count}')
        return count

    def close(self):
        self.manager.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
