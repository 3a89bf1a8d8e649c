"""
Block Type Registry for the Dart block workspace.

Declares every block kind the workspace can hold: its typed field descriptors,
its sockets and the type tags they accept, plus display metadata and the
toolbox categories a rendering host shows in its palette.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Tuple
import uuid

from .exceptions import UnknownBlockTypeError
from .models import (
    BlockNode, Socket, SocketKind, FieldDescriptor, TextField, NumberField, DropdownField,
    PREVIOUS, NEXT, OUTPUT
)


# Type tags carried by value sockets
BOOLEAN = 'Boolean'
STRING = 'String'
NUMBER = 'Number'
LIST = 'List'

# Block type tags
DART_CLASS = 'dart_class'
DART_METHOD = 'dart_method'
DART_VARIABLE = 'dart_variable'
DART_IF = 'dart_if'
DART_FOR = 'dart_for'
DART_RETURN = 'dart_return'
DART_STRING = 'dart_string'
DART_NUMBER = 'dart_number'
DART_BOOLEAN = 'dart_boolean'
DART_CONSTRUCTOR = 'dart_constructor'
DART_LIST = 'dart_list'

RETURN_TYPES = ('void', 'String', 'int', 'bool', 'double')
VARIABLE_TYPES = ('var', 'final', 'const', 'String', 'int', 'bool', 'List', 'Map')

# Field descriptors, one set per block kind
CLASS_NAME = TextField('CLASS_NAME', 'MyClass')
RETURN_TYPE = DropdownField('RETURN_TYPE', 'void', RETURN_TYPES)
METHOD_NAME = TextField('METHOD_NAME', 'methodName')
PARAMETERS = TextField('PARAMETERS', '')
VAR_TYPE = DropdownField('VAR_TYPE', 'var', VARIABLE_TYPES)
VAR_NAME = TextField('VAR_NAME', 'variableName')
ITERATOR = TextField('ITERATOR', 'item')
ITERABLE = TextField('ITERABLE', 'list')
TEXT = TextField('TEXT', 'text')
NUMBER_VALUE = NumberField('NUMBER', 0)
BOOL = DropdownField('BOOL', 'true', ('true', 'false'))
CONSTRUCTOR_NAME = TextField('CLASS_NAME', 'ClassName')
CONSTRUCTOR_PARAMETERS = TextField('PARAMETERS', 'parameters')
LIST_TYPE = TextField('TYPE', 'String')

# Input socket names
BODY = 'BODY'
VALUE = 'VALUE'
CONDITION = 'CONDITION'
THEN_BODY = 'THEN_BODY'
ELSE_BODY = 'ELSE_BODY'
ELEMENTS = 'ELEMENTS'


@dataclass(frozen=True)
class SocketDefinition:
    """Declares one socket of a block kind."""
    name: str
    kind: SocketKind
    check: Optional[Tuple[str, ...]] = None
    label: str = ""


@dataclass
class BlockDefinition:
    """Declarative description of a block kind."""
    block_type: str
    fields: Tuple[FieldDescriptor, ...] = ()
    sockets: Tuple[SocketDefinition, ...] = ()
    colour: int = 0
    tooltip: str = ""
    category: str = ""

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None

    def get_socket(self, name: str) -> Optional[SocketDefinition]:
        for socket in self.sockets:
            if socket.name == name:
                return socket
        return None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly description for rendering hosts."""
        fields = []
        for descriptor in self.fields:
            entry = {'name': descriptor.name, 'kind': type(descriptor).__name__,
                     'default': descriptor.default}
            if isinstance(descriptor, DropdownField):
                entry['options'] = list(descriptor.options)
            fields.append(entry)
        return {
            'type': self.block_type,
            'fields': fields,
            'sockets': [
                {'name': s.name, 'kind': s.kind.value,
                 'check': list(s.check) if s.check is not None else None,
                 'label': s.label}
                for s in self.sockets
            ],
            'colour': self.colour,
            'tooltip': self.tooltip,
            'category': self.category,
        }


def _statement(previous: bool = True, next_: bool = True) -> Tuple[SocketDefinition, ...]:
    sockets = []
    if previous:
        sockets.append(SocketDefinition(PREVIOUS, SocketKind.PREVIOUS))
    if next_:
        sockets.append(SocketDefinition(NEXT, SocketKind.NEXT))
    return tuple(sockets)


def _output(check: str) -> SocketDefinition:
    return SocketDefinition(OUTPUT, SocketKind.OUTPUT, (check,))


DEFAULT_BLOCKS: Tuple[BlockDefinition, ...] = (
    BlockDefinition(
        DART_CLASS,
        fields=(CLASS_NAME,),
        sockets=(SocketDefinition(BODY, SocketKind.STATEMENT_INPUT, label='body'),),
        colour=230, tooltip='Dart class definition', category='Structure'
    ),
    BlockDefinition(
        DART_METHOD,
        fields=(RETURN_TYPE, METHOD_NAME, PARAMETERS),
        sockets=(SocketDefinition(BODY, SocketKind.STATEMENT_INPUT, label='body'),) + _statement(),
        colour=160, tooltip='Dart method definition', category='Structure'
    ),
    BlockDefinition(
        DART_CONSTRUCTOR,
        fields=(CONSTRUCTOR_NAME, CONSTRUCTOR_PARAMETERS),
        sockets=(SocketDefinition(BODY, SocketKind.STATEMENT_INPUT, label='body'),) + _statement(),
        colour=290, tooltip='Dart constructor', category='Structure'
    ),
    BlockDefinition(
        DART_VARIABLE,
        fields=(VAR_TYPE, VAR_NAME),
        sockets=(SocketDefinition(VALUE, SocketKind.VALUE_INPUT),) + _statement(),
        colour=290, tooltip='Dart variable declaration', category='Variables'
    ),
    BlockDefinition(
        DART_LIST,
        fields=(LIST_TYPE,),
        sockets=(SocketDefinition(ELEMENTS, SocketKind.VALUE_INPUT, label='='), _output(LIST)),
        colour=160, tooltip='Dart List declaration', category='Variables'
    ),
    BlockDefinition(
        DART_IF,
        sockets=(
            SocketDefinition(CONDITION, SocketKind.VALUE_INPUT, (BOOLEAN,), label='if'),
            SocketDefinition(THEN_BODY, SocketKind.STATEMENT_INPUT, label='then'),
            SocketDefinition(ELSE_BODY, SocketKind.STATEMENT_INPUT, label='else'),
        ) + _statement(),
        colour=210, tooltip='Dart if statement', category='Control Flow'
    ),
    BlockDefinition(
        DART_FOR,
        fields=(ITERATOR, ITERABLE),
        sockets=(SocketDefinition(BODY, SocketKind.STATEMENT_INPUT, label='body'),) + _statement(),
        colour=120, tooltip='Dart for loop', category='Control Flow'
    ),
    BlockDefinition(
        DART_RETURN,
        sockets=(SocketDefinition(VALUE, SocketKind.VALUE_INPUT, label='return'),) + _statement(next_=False),
        colour=330, tooltip='Dart return statement', category='Control Flow'
    ),
    BlockDefinition(
        DART_STRING,
        fields=(TEXT,),
        sockets=(_output(STRING),),
        colour=160, tooltip='String literal', category='Values'
    ),
    BlockDefinition(
        DART_NUMBER,
        fields=(NUMBER_VALUE,),
        sockets=(_output(NUMBER),),
        colour=230, tooltip='Number literal', category='Values'
    ),
    BlockDefinition(
        DART_BOOLEAN,
        fields=(BOOL,),
        sockets=(_output(BOOLEAN),),
        colour=210, tooltip='Boolean literal', category='Values'
    ),
)

TOOLBOX_CATEGORIES: Tuple[Tuple[str, int], ...] = (
    ('Structure', 230),
    ('Variables', 290),
    ('Control Flow', 210),
    ('Values', 160),
)


class BlockTypeRegistry:
    """Holds the block definitions available to a workspace."""

    def __init__(self, definitions: Optional[List[BlockDefinition]] = None):
        self._definitions: Dict[str, BlockDefinition] = {}
        for definition in (DEFAULT_BLOCKS if definitions is None else definitions):
            self.register(definition)

    def register(self, definition: BlockDefinition):
        """Register (or replace) a block definition."""
        self._definitions[definition.block_type] = definition

    def get(self, block_type: str) -> BlockDefinition:
        definition = self._definitions.get(block_type)
        if definition is None:
            raise UnknownBlockTypeError(block_type, {'known': sorted(self._definitions)})
        return definition

    def __contains__(self, block_type: str) -> bool:
        return block_type in self._definitions

    def block_types(self) -> List[str]:
        return list(self._definitions)

    def create_node(self, block_type: str, position: Tuple[float, float] = (0.0, 0.0)) -> BlockNode:
        """Instantiate a block with default field values and its sockets."""
        definition = self.get(block_type)
        node_id = str(uuid.uuid4())
        return BlockNode(
            block_type=block_type,
            id=node_id,
            position=position,
            fields={d.name: d.default for d in definition.fields},
            field_descriptors={d.name: d for d in definition.fields},
            sockets={
                s.name: Socket(node_id=node_id, name=s.name, kind=s.kind, check=s.check)
                for s in definition.sockets
            },
        )

    def get_toolbox(self) -> Dict[str, Any]:
        """Categorized toolbox in the shape Blockly's ``inject`` expects."""
        contents = []
        for name, colour in TOOLBOX_CATEGORIES:
            blocks = [{'kind': 'block', 'type': d.block_type}
                      for d in self._definitions.values() if d.category == name]
            if blocks:
                contents.append({'kind': 'category', 'name': name, 'colour': colour,
                                 'contents': blocks})
        return {'kind': 'categoryToolbox', 'contents': contents}

    def to_dict(self) -> Dict[str, Any]:
        return {block_type: d.to_dict() for block_type, d in self._definitions.items()}
