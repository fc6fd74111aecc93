"""Statement builder for entity save/load/list/remove operations."""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .conditions import Absent, IsNull, MatchesPattern, QueryOptions, parse_filters
from .escaper import escape
from .mappings import identity_field, inline_ignore_case, pattern_operators, rid_param, row_ref_columns
from .names import to_storage_name


_table_rx = re.compile(r'^[\w]+$')
_column_rx = re.compile(r'^[A-Za-z0-9]\w*$')


@dataclass
class Statement:
    """Statement text plus bound values."""
    text: str
    values: Union[Dict[str, Any], List[Any]] = field(default_factory=dict)


@dataclass
class InsertStatement:
    table: str
    fields: Dict[str, Any]


@dataclass
class UpdateStatement:
    table: str
    fields: Dict[str, Any]
    rid: Any


@dataclass
class DeleteStatement:
    table: str
    rid: Any


class StatementBuilder:
    """Builds statements from entities and query descriptors.

    Entity helpers are injected so the builder stays pure: ``tablename(ent)``,
    ``makeentp(ent)`` and ``fixquery(entp, q)``.
    """
    def __init__(self, tablename: Callable, makeentp: Callable, fixquery: Callable, dialect: str = 'default'):
        self.dialect = dialect.lower()
        self.tablename = tablename
        self.makeentp = makeentp
        self.fixquery = fixquery
        self.rid_column = row_ref_columns.get(self.dialect, row_ref_columns['default'])
        self.match_ops = pattern_operators.get(self.dialect, pattern_operators['default'])

    def _table(self, ent) -> str:
        table = self.tablename(ent)
        if not _table_rx.match(table):
            raise ValueError(f'Invalid table name: {table}')
        return table

    def _column(self, name: str) -> str:
        col = to_storage_name(name)
        if not _column_rx.match(col):
            raise ValueError(f'Invalid field name: {name}')
        return col

    def _storage_fields(self, entp: Dict[str, Any]) -> Dict[str, Any]:
        return {self._column(k): v for k, v in entp.items() if k != identity_field}

    def insert(self, ent) -> InsertStatement:
        """Insert shape; the identity field is left for the store to generate."""
        entp = self.makeentp(ent)
        return InsertStatement(self._table(ent), self._storage_fields(entp))

    def update(self, ent) -> UpdateStatement:
        """Update-by-row-reference shape."""
        entp = self.makeentp(ent)
        return UpdateStatement(self._table(ent), self._storage_fields(entp), entp.get(identity_field))

    def delete(self, qent, q: Optional[Dict[str, Any]] = None) -> DeleteStatement:
        """Delete-by-row-reference shape; rid comes from q['id'] or the query entity."""
        entp = self.makeentp(qent)
        rid = (q or {}).get(identity_field, entp.get(identity_field))
        return DeleteStatement(self._table(qent), rid)

    def build_where(self, entp: Dict[str, Any], q: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """AND-joined predicates for the plain filters of q."""
        parts = []
        values = {}
        for flt in parse_filters(self.fixquery(entp, q)):
            if isinstance(flt, Absent):
                continue
            col = self._column(flt.field)
            if col == identity_field:
                if isinstance(flt, MatchesPattern):
                    raise ValueError(f'Pattern filters are not supported on {identity_field}')
                if isinstance(flt, IsNull):
                    parts.append(f'{self.rid_column} IS NULL')
                else:
                    parts.append(f'{self.rid_column} = :{rid_param}')
                    values[rid_param] = flt.value
            elif isinstance(flt, IsNull):
                parts.append(f'{escape(col)} IS NULL')
            elif isinstance(flt, MatchesPattern):
                parts.append(f'{escape(col)} {self._match_op(flt)} :{col}')
                values[col] = self._pattern(flt)
            else:
                parts.append(f'{escape(col)} = :{col}')
                values[col] = flt.value
        return ' AND '.join(parts), values

    def _match_op(self, flt: MatchesPattern) -> str:
        return self.match_ops[1] if flt.ignore_case else self.match_ops[0]

    def _pattern(self, flt: MatchesPattern) -> str:
        flag = inline_ignore_case.get(self.dialect)
        return flag + flt.pattern if flag and flt.ignore_case else flt.pattern

    def suffix(self, opts: QueryOptions, limit: Optional[int] = None) -> str:
        """ORDER BY / LIMIT / OFFSET tail."""
        parts = []
        if opts.sort:
            name, direction = opts.sort
            try:
                desc = float(direction) < 0
            except (TypeError, ValueError):
                raise ValueError(f'Invalid sort direction for {name}: {direction!r}')
            parts.append(f'ORDER BY {self._column(name)} {"DESC" if desc else "ASC"}')
        parts.append(f'LIMIT {limit or opts.effective_limit()}')
        if opts.skip:
            parts.append(f'OFFSET {opts.skip}')
        return escape(' ' + ' '.join(parts))

    def select(self, qent, q: Optional[Dict[str, Any]] = None) -> Statement:
        """SELECT with AND-joined filters."""
        return self._select(qent, q or {}, '*')

    def select_distinct(self, qent, q: Dict[str, Any]) -> Statement:
        """SELECT DISTINCT over '*' or the columns listed in distinct$."""
        cols = QueryOptions.from_query(q).distinct_columns or ['*']
        if cols != ['*'] and not all(_table_rx.match(c) for c in cols):
            raise ValueError(f'Invalid distinct$ columns: {cols}')
        return self._select(qent, q, 'DISTINCT ' + escape(','.join(cols)))

    def _select(self, qent, q: Dict[str, Any], projection: str) -> Statement:
        table = self._table(qent)
        where, values = self.build_where(self.makeentp(qent), q)
        where_sql = f' WHERE {where}' if where else ''
        text = f'SELECT {projection} FROM {escape(table)}{where_sql}{self.suffix(QueryOptions.from_query(q))}'
        return Statement(text, values)

    def select_or(self, qent, q: Dict[str, Any]) -> Statement:
        """SELECT matching any of q['ids'] by row reference."""
        table = self._table(qent)
        opts = QueryOptions.from_query(q)
        ids = opts.ids or []
        parts = []
        values = {}
        for i, rid in enumerate(ids):
            parts.append(f'{self.rid_column} = :{rid_param}{i}')
            values[f'{rid_param}{i}'] = rid
        where_sql = f' WHERE {" OR ".join(parts)}' if parts else ''
        # all requested ids must fit under the limit
        limit = opts.limit or len(ids) or None
        text = f'SELECT * FROM {escape(table)}{where_sql}{self.suffix(opts, limit)}'
        return Statement(text, values)

    def delete_matching(self, qent, q: Dict[str, Any]) -> Statement:
        """DELETE every row matching the AND filters of q."""
        table = self._table(qent)
        where, values = self.build_where(self.makeentp(qent), q)
        where_sql = f' WHERE {where}' if where else ''
        return Statement(f'DELETE FROM {escape(table)}{where_sql}', values)
