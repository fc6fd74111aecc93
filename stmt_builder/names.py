"""Field name <-> column name conversion."""

import re

_upper = re.compile(r'[A-Z]')


def to_storage_name(field: str) -> str:
    """Convert 'fooBar' to 'foo_bar'."""
    return _upper.sub(lambda m: '_' + m.group(0).lower(), field)


def to_entity_name(column: str) -> str:
    """Convert 'foo_bar' to 'fooBar'."""
    head, *rest = column.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)
