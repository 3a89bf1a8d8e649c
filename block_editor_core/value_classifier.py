"""
Maps literal expressions to literal block kinds.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

from .block_registry import (
    DART_NUMBER, DART_BOOLEAN, DART_STRING, DART_LIST, NUMBER_VALUE, BOOL, TEXT
)
from .models import FieldDescriptor


_DIGITS = re.compile(r'^\d+$')
_QUOTES = re.compile(r'[\'"]')


@dataclass(frozen=True)
class ClassifiedValue:
    """A literal block kind, the field it fills and the normalized value."""
    block_type: str
    value: Any
    field: Optional[FieldDescriptor] = None


def classify_value(expression: str) -> ClassifiedValue:
    """Classify a literal expression; the first matching rule wins.

    Numbers and booleans are tested before quotes and brackets so that a
    quoted number still reads as a string and ``[1]`` never reads as a number.
    """
    trimmed = expression.strip()

    if _DIGITS.match(trimmed):
        return ClassifiedValue(DART_NUMBER, int(trimmed), NUMBER_VALUE)

    if trimmed in ('true', 'false'):
        return ClassifiedValue(DART_BOOLEAN, trimmed, BOOL)

    if '"' in expression or "'" in expression:
        return ClassifiedValue(DART_STRING, _QUOTES.sub('', expression), TEXT)

    if '[' in expression:
        # Elements are not decomposed; the literal keeps the raw text.
        return ClassifiedValue(DART_LIST, expression)

    return ClassifiedValue(DART_STRING, expression, TEXT)
