"""Statement builder subpackage: entity query descriptors to parameterized statements."""

from .names import to_storage_name, to_entity_name
from .escaper import escape
from .conditions import ABSENT, Filter, Equals, IsNull, MatchesPattern, Absent, QueryOptions, parse_filters
from .query_builder import StatementBuilder, Statement, InsertStatement, UpdateStatement, DeleteStatement
from .template import from_template

__all__ = [
    'to_storage_name',
    'to_entity_name',
    'escape',
    'ABSENT',
    'Filter',
    'Equals',
    'IsNull',
    'MatchesPattern',
    'Absent',
    'QueryOptions',
    'parse_filters',
    'StatementBuilder',
    'Statement',
    'InsertStatement',
    'UpdateStatement',
    'DeleteStatement',
    'from_template'
]
