"""Escaping for text spliced directly into statement text."""

import re
from datetime import date
from typing import Any, Union

_special = re.compile('[\x00\x08\x09\x1a\n\r"\'\\\\%]')

_replacements = {
    '\x00': '\\0',
    '\x08': '\\b',
    '\x09': '\\t',
    '\x1a': '\\z',
    '\n': '\\n',
    '\r': '\\r',
    '"': '\\"',
    "'": "\\'",
    '\\': '\\\\',
    '%': '\\%',
}


def escape(value: Any) -> Union[str, date]:
    """Escape control and quote characters; dates pass through for the client to encode.

    Only for identifiers and clause text. User values go through bound parameters.
    """
    if isinstance(value, date):
        return value
    return _special.sub(lambda m: _replacements[m.group(0)], str(value))
