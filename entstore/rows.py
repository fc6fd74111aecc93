"""Raw row to entity field mapping."""

from typing import Any, Dict, Mapping, Optional
from stmt_builder import to_entity_name
from stmt_builder.mappings import identity_field


def map_row(row: Mapping[str, Any], rid_column: Optional[str] = None) -> Dict[str, Any]:
    """Rename snake_case columns to entity field names, values unchanged.

    A native row-reference column other than 'id' (e.g. '@rid') comes back as the identity field.
    """
    out = {}
    for k, v in row.items():
        if rid_column and k == rid_column:
            out[identity_field] = v
        else:
            out[to_entity_name(k)] = v
    return out
