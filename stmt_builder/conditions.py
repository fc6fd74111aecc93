"""Filter variants and query options parsed from an entity query descriptor."""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .mappings import default_limit


class _Absent:
    """Marker for a filter whose value was not given."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'ABSENT'

    def __bool__(self):
        return False


ABSENT = _Absent()


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class IsNull:
    field: str


@dataclass(frozen=True)
class MatchesPattern:
    field: str
    pattern: str
    ignore_case: bool = False


@dataclass(frozen=True)
class Absent:
    """Filter not specified; contributes no predicate."""
    field: str


Filter = Union[Equals, IsNull, MatchesPattern, Absent]


def to_filter(name: str, value: Any) -> Filter:
    """Classify one descriptor entry."""
    if value is ABSENT:
        return Absent(name)
    if value is None:
        return IsNull(name)
    if isinstance(value, re.Pattern):
        return MatchesPattern(name, value.pattern, bool(value.flags & re.IGNORECASE))
    return Equals(name, value)


def parse_filters(filters: Dict[str, Any]) -> List[Filter]:
    """Turn a flat field->value map into filter variants, keeping order."""
    return [to_filter(k, v) for k, v in filters.items()]


@dataclass
class QueryOptions:
    """Control keys of a query descriptor."""
    sort: Optional[Tuple[str, int]] = None
    limit: Optional[int] = None
    skip: Optional[int] = None
    distinct: Union[bool, List[str]] = False
    ids: Optional[List[Any]] = None
    all: bool = False

    @classmethod
    def from_query(cls, q: Optional[Dict[str, Any]]) -> 'QueryOptions':
        """Read control keys; only the first sort$ entry is used."""
        q = q or {}
        sort = None
        sort_spec = q.get('sort$')
        if sort_spec:
            if not isinstance(sort_spec, dict):
                raise ValueError(f'sort$ must be a mapping, got: {sort_spec!r}')
            name, direction = next(iter(sort_spec.items()))
            sort = (name, direction)
        ids = q.get('ids')
        return cls(
            sort=sort,
            limit=q.get('limit$') or None,
            skip=q.get('skip$') or None,
            distinct=q.get('distinct$') or False,
            ids=list(ids) if ids is not None else None,
            all=bool(q.get('all$')),
        )

    @property
    def distinct_columns(self) -> List[str]:
        """Explicit projection, honored only when distinct$ is a list."""
        return list(self.distinct) if isinstance(self.distinct, (list, tuple)) else []

    def effective_limit(self) -> int:
        return self.limit if self.limit else default_limit
