"""Raw statement templates with '?' placeholders."""

import re
from typing import Any, Sequence

from .query_builder import Statement

_qmark = re.compile(r'\?')


def from_template(text: str, params: Sequence[Any] = ()) -> Statement:
    """Rewrite each '?' to ':paramN' and bind params positionally."""
    if not text:
        return Statement(text, {})
    count = len(_qmark.findall(text))
    if count != len(params):
        raise ValueError(f'Template expects {count} parameters, got {len(params)}')
    counter = iter(range(count))
    sql = _qmark.sub(lambda m: f':param{next(counter)}', text)
    return Statement(sql, {f'param{i}': v for i, v in enumerate(params)})
