"""
Pulls Dart source out of a free-form model reply before it is parsed.
"""

import re
from typing import Optional


DART_FENCE = re.compile(r'```dart\s*([\s\S]*?)\s*```')
ANY_FENCE = re.compile(r'```\s*([\s\S]*?)\s*```')

PROGRAMMING_INDICATORS = (
    '{', '}', '(', ')', ';', '=', 'class', 'void', 'int', 'String',
    'List', 'Map', 'var', 'final', 'const', 'if', 'for', 'while',
    'return', 'import', 'extends', 'implements'
)


def extract_dart_code(text: str) -> Optional[str]:
    """Return the code in ``text``, or None when it does not look like code.

    A ```dart fence wins over any other fence; unfenced text is accepted when
    enough programming indicators appear in it.
    """
    if not text:
        return None

    match = DART_FENCE.search(text)
    if match:
        return match.group(1).strip()

    match = ANY_FENCE.search(text)
    if match:
        return match.group(1).strip()

    lines = text.strip().split('\n')
    indicator_count = sum(1 for indicator in PROGRAMMING_INDICATORS if indicator in text)

    if (len(lines) > 2 and indicator_count >= 3) \
            or indicator_count >= 5 \
            or ('class' in text and '{' in text) \
            or ('void' in text and '(' in text):
        return text.strip()

    return None
