"""
Declaration records produced by the structure parser.

A parse pass yields one ``ClassDeclaration`` per class found in the source,
each holding its methods and variables in the order they were discovered.
The records are consumed by the graph builder and not kept afterwards.
"""

from dataclasses import dataclass, field
from typing import List, Union
from enum import Enum


class DeclarationKind(Enum):
    """Kinds of declaration the parser recognises."""
    CLASS = "class"
    METHOD = "method"
    VARIABLE = "variable"


@dataclass
class MethodDeclaration:
    """A method signature found inside a class."""
    return_type: str
    name: str
    parameters: str = ""
    kind: DeclarationKind = field(default=DeclarationKind.METHOD, init=False)


@dataclass
class VariableDeclaration:
    """A variable declaration with an initializer found inside a class."""
    var_type: str
    name: str
    value: str = ""
    kind: DeclarationKind = field(default=DeclarationKind.VARIABLE, init=False)


Member = Union[MethodDeclaration, VariableDeclaration]


@dataclass
class ClassDeclaration:
    """A class and its members in source order."""
    name: str
    members: List[Member] = field(default_factory=list)
    kind: DeclarationKind = field(default=DeclarationKind.CLASS, init=False)

    @property
    def methods(self) -> List[MethodDeclaration]:
        return [m for m in self.members if m.kind == DeclarationKind.METHOD]

    @property
    def variables(self) -> List[VariableDeclaration]:
        return [m for m in self.members if m.kind == DeclarationKind.VARIABLE]

    def add_member(self, member: Member):
        self.members.append(member)


DeclarationRecord = Union[ClassDeclaration, MethodDeclaration, VariableDeclaration]
