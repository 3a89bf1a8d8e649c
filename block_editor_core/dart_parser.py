"""
Line-oriented Dart structure parser.

Scans source text line by line, tracking brace depth, and records the classes
it finds together with their method signatures and initialized variables.
The parser is best-effort: lines it cannot classify are skipped and malformed
input yields whatever records could be recovered.
"""

import logging
import re
from typing import List, Optional

from .declarations import ClassDeclaration, MethodDeclaration, VariableDeclaration


logger = logging.getLogger(__name__)


class DartStructureParser:
    """Parses Dart-like code into class declaration records."""

    CLASS_PATTERN = re.compile(r'class\s+(\w+)')
    METHOD_PATTERN = re.compile(r'(void|String|int|bool|double)\s+(\w+)\s*\(([^)]*)\)')
    VARIABLE_PATTERN = re.compile(r'(var|final|const|String|int|bool|List)\s+(\w+)\s*=\s*(.+?)\s*;?\s*$')

    METHOD_KEYWORDS = ('void ', 'String ', 'int ', 'bool ', 'double ')
    VARIABLE_KEYWORDS = ('var ', 'final ', 'const ', 'String ', 'int ', 'List ')

    def __init__(self):
        self.current_class: Optional[ClassDeclaration] = None
        self.brace_depth = 0
        self.in_class = False

    def parse(self, code: str) -> List[ClassDeclaration]:
        """Parse source text into class records, in source order."""
        structure: List[ClassDeclaration] = []
        self.current_class = None
        self.brace_depth = 0
        self.in_class = False

        if not code:
            return structure

        lines = [line.strip() for line in code.split('\n')]
        lines = [line for line in lines if line]

        for line in lines:
            self.brace_depth += line.count('{') - line.count('}')

            class_decl = self._match_class(line)
            if class_decl is not None:
                self.current_class = class_decl
                self.in_class = True
                structure.append(class_decl)
                continue

            if self.in_class and self.current_class is not None:
                method = self._match_method(line)
                if method is not None:
                    self.current_class.add_member(method)
                    continue

                variable = self._match_variable(line)
                if variable is not None:
                    self.current_class.add_member(variable)
                    continue

            if self.in_class and self.brace_depth == 0 and line == '}':
                self.in_class = False
                self.current_class = None

        logger.debug("Parsed %d class declaration(s) from %d line(s)", len(structure), len(lines))
        return structure

    def _match_class(self, line: str) -> Optional[ClassDeclaration]:
        if not line.startswith('class '):
            return None
        match = self.CLASS_PATTERN.search(line)
        if not match:
            return None
        return ClassDeclaration(name=match.group(1))

    def _match_method(self, line: str) -> Optional[MethodDeclaration]:
        """A method needs a return-type keyword and a parenthesized parameter list."""
        if not any(keyword in line for keyword in self.METHOD_KEYWORDS):
            return None
        if '(' not in line or ')' not in line:
            return None
        match = self.METHOD_PATTERN.search(line)
        if not match:
            return None
        return MethodDeclaration(
            return_type=match.group(1),
            name=match.group(2),
            parameters=match.group(3).strip()
        )

    def _match_variable(self, line: str) -> Optional[VariableDeclaration]:
        """A variable needs a type or qualifier keyword and an ``=``."""
        if not any(keyword in line for keyword in self.VARIABLE_KEYWORDS):
            return None
        if '=' not in line:
            return None
        match = self.VARIABLE_PATTERN.search(line)
        if not match:
            return None
        return VariableDeclaration(
            var_type=match.group(1),
            name=match.group(2),
            value=match.group(3)
        )


def parse_structure(code: str) -> List[ClassDeclaration]:
    """Parse source text with a fresh parser."""
    return DartStructureParser().parse(code)
