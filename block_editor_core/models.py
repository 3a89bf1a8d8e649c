"""
Core data models for the Block Editor.

This module defines the fundamental data structures of the block workspace:
typed field descriptors, sockets, block nodes, connections and the workspace
model that owns them.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Any, Tuple, Optional, Union
from enum import Enum
import uuid

from .exceptions import FieldValueError


# (node_id, socket_name)
SocketKey = Tuple[str, str]

PREVIOUS = 'previous'
NEXT = 'next'
OUTPUT = 'output'

# Characters outside the XML 1.0 Char production
_NON_XML_CHARS = re.compile(r'[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]')


def xml_safe_text(text: str) -> str:
    """Normalize line endings to ``\\n`` and drop characters XML 1.0 cannot carry."""
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    return _NON_XML_CHARS.sub('', text)


class ValidationError(Exception):
    """Exception raised when workspace model validation fails."""
    pass


class SocketKind(Enum):
    """Connection points a block can expose."""
    PREVIOUS = "previous"
    NEXT = "next"
    STATEMENT_INPUT = "statement_input"
    VALUE_INPUT = "value_input"
    OUTPUT = "output"

    @property
    def is_statement(self) -> bool:
        return self in (SocketKind.PREVIOUS, SocketKind.NEXT, SocketKind.STATEMENT_INPUT)

    @property
    def is_parent_side(self) -> bool:
        """Parent-side sockets hold a child block; the others attach to one."""
        return self in (SocketKind.NEXT, SocketKind.STATEMENT_INPUT, SocketKind.VALUE_INPUT)


# Field descriptors

@dataclass(frozen=True)
class FieldDescriptor:
    """A named, typed field on a block kind."""
    name: str
    default: Any = ""

    def coerce(self, value: Any) -> Any:
        """Return the stored form of ``value`` or raise FieldValueError."""
        return value

    def to_text(self, value: Any) -> str:
        return "" if value is None else str(value)


@dataclass(frozen=True)
class TextField(FieldDescriptor):
    """Free text input."""

    def coerce(self, value: Any) -> str:
        if value is None:
            return ""
        return xml_safe_text(str(value))


@dataclass(frozen=True)
class NumberField(FieldDescriptor):
    """Numeric input; integral values are kept as ``int``."""
    default: Union[int, float] = 0

    def coerce(self, value: Any) -> Union[int, float]:
        if isinstance(value, bool):
            raise FieldValueError(f"Field {self.name} expects a number", self.name, value)
        if isinstance(value, (int, float)):
            return value
        text = str(value).strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise FieldValueError(f"Field {self.name} expects a number, got {value!r}",
                                  self.name, value)
        return int(number) if number.is_integer() else number


@dataclass(frozen=True)
class DropdownField(FieldDescriptor):
    """Enumerated token input."""
    options: Tuple[str, ...] = ()

    def coerce(self, value: Any) -> str:
        token = str(value).strip()
        if token not in self.options:
            raise FieldValueError(
                f"Field {self.name} accepts {', '.join(self.options)}; got {value!r}",
                self.name, value
            )
        return token


# Sockets and blocks

@dataclass(frozen=True)
class Socket:
    """A typed connection point owned by one block.

    ``check`` lists the type tags the socket produces (outputs) or accepts
    (inputs); ``None`` means any type.
    """
    node_id: str
    name: str
    kind: SocketKind
    check: Optional[Tuple[str, ...]] = None

    @property
    def key(self) -> SocketKey:
        return (self.node_id, self.name)


@dataclass
class BlockNode:
    """An instantiated block in the workspace."""
    block_type: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    position: Tuple[float, float] = (0.0, 0.0)
    fields: Dict[str, Any] = field(default_factory=dict)
    field_descriptors: Dict[str, FieldDescriptor] = field(default_factory=dict)
    sockets: Dict[str, Socket] = field(default_factory=dict)
    data: Optional[str] = None  # Free-form note carried through serialization

    def get_socket(self, name: str) -> Optional[Socket]:
        """Get a socket by name."""
        return self.sockets.get(name)

    @property
    def previous_socket(self) -> Optional[Socket]:
        return self.sockets.get(PREVIOUS)

    @property
    def next_socket(self) -> Optional[Socket]:
        return self.sockets.get(NEXT)

    @property
    def output_socket(self) -> Optional[Socket]:
        return self.sockets.get(OUTPUT)

    def input_sockets(self) -> List[Socket]:
        """Statement and value inputs, in declaration order."""
        return [s for s in self.sockets.values()
                if s.kind in (SocketKind.STATEMENT_INPUT, SocketKind.VALUE_INPUT)]

    def descriptor(self, name: str) -> FieldDescriptor:
        """Look up the descriptor of a field by its name."""
        descriptor = self.field_descriptors.get(name)
        if descriptor is None:
            raise FieldValueError(f"Block {self.block_type} has no field {name}", name)
        return descriptor

    def set_field(self, descriptor: FieldDescriptor, value: Any) -> Any:
        """Set a field through its descriptor and return the stored value."""
        own = self.field_descriptors.get(descriptor.name)
        if own != descriptor:
            raise FieldValueError(
                f"Block {self.block_type} has no field {descriptor.name}",
                descriptor.name, value
            )
        stored = descriptor.coerce(value)
        self.fields[descriptor.name] = stored
        return stored

    def get_field(self, descriptor: FieldDescriptor) -> Any:
        return self.fields.get(descriptor.name, descriptor.default)


@dataclass
class Connection:
    """An edge from a parent-side socket to the child block attached there."""
    parent_node_id: str
    parent_socket: str
    child_node_id: str
    child_socket: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def parent_key(self) -> SocketKey:
        return (self.parent_node_id, self.parent_socket)

    @property
    def child_key(self) -> SocketKey:
        return (self.child_node_id, self.child_socket)


@dataclass
class WorkspaceModel:
    """The live node and edge set of one workspace.

    Connections are indexed by the identity of both sockets they join, so a
    socket is connected exactly when it appears in ``socket_index``.
    """
    nodes: Dict[str, BlockNode] = field(default_factory=dict)
    connections: List[Connection] = field(default_factory=list)
    socket_index: Dict[SocketKey, Connection] = field(default_factory=dict, repr=False)

    def add_node(self, node: BlockNode) -> str:
        """Add a node to the model and return its ID."""
        self.nodes[node.id] = node
        return node.id

    def get_node(self, node_id: str) -> Optional[BlockNode]:
        return self.nodes.get(node_id)

    def get_socket(self, key: SocketKey) -> Optional[Socket]:
        node = self.nodes.get(key[0])
        if node is None:
            return None
        return node.get_socket(key[1])

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and all its connections from the model."""
        if node_id not in self.nodes:
            return False

        for connection in list(self.connections):
            if connection.parent_node_id == node_id or connection.child_node_id == node_id:
                self.remove_connection(connection)

        del self.nodes[node_id]
        return True

    def is_connected(self, key: SocketKey) -> bool:
        return key in self.socket_index

    def connection_at(self, key: SocketKey) -> Optional[Connection]:
        return self.socket_index.get(key)

    def add_connection(self, connection: Connection) -> bool:
        """Record an already validated connection."""
        if connection.parent_node_id not in self.nodes:
            return False
        if connection.child_node_id not in self.nodes:
            return False
        if connection.parent_key in self.socket_index or connection.child_key in self.socket_index:
            return False
        self.connections.append(connection)
        self.socket_index[connection.parent_key] = connection
        self.socket_index[connection.child_key] = connection
        return True

    def remove_connection(self, connection: Connection) -> bool:
        if connection not in self.connections:
            return False
        self.connections.remove(connection)
        self.socket_index.pop(connection.parent_key, None)
        self.socket_index.pop(connection.child_key, None)
        return True

    def clear(self):
        """Drop every node and connection."""
        self.nodes.clear()
        self.connections.clear()
        self.socket_index.clear()

    def parent_of(self, node_id: str) -> Optional[str]:
        """Return the node this node is attached to, if any."""
        node = self.nodes.get(node_id)
        if node is None:
            return None
        for socket in (node.previous_socket, node.output_socket):
            if socket is not None:
                connection = self.socket_index.get(socket.key)
                if connection is not None:
                    return connection.parent_node_id
        return None

    def child_at(self, key: SocketKey) -> Optional[BlockNode]:
        """Return the block attached to a parent-side socket."""
        connection = self.socket_index.get(key)
        if connection is None or connection.parent_key != key:
            return None
        return self.nodes.get(connection.child_node_id)

    def is_ancestor(self, ancestor_id: str, node_id: str) -> bool:
        """True when ``ancestor_id`` is ``node_id`` or one of its parents."""
        seen = set()
        current: Optional[str] = node_id
        while current is not None and current not in seen:
            if current == ancestor_id:
                return True
            seen.add(current)
            current = self.parent_of(current)
        return False

    def top_blocks(self) -> List[BlockNode]:
        """Blocks without a parent, in insertion order."""
        return [node for node_id, node in self.nodes.items()
                if self.parent_of(node_id) is None]

    def descendants(self, node_id: str) -> List[BlockNode]:
        """All blocks attached below a block, depth first, parent included."""
        result = []
        stack = [node_id]
        seen = set()
        while stack:
            current = stack.pop()
            if current in seen or current not in self.nodes:
                continue
            seen.add(current)
            node = self.nodes[current]
            result.append(node)
            children = [self.child_at(s.key) for s in node.sockets.values() if s.kind.is_parent_side]
            stack.extend(reversed([c.id for c in children if c is not None]))
        return result

    def statement_chain(self, key: SocketKey) -> List[BlockNode]:
        """Blocks chained from a statement input through their next sockets."""
        chain = []
        seen = set()
        child = self.child_at(key)
        while child is not None and child.id not in seen:
            seen.add(child.id)
            chain.append(child)
            next_socket = child.next_socket
            child = self.child_at(next_socket.key) if next_socket else None
        return chain

    def validate_model(self) -> List[ValidationError]:
        """Validate the entire model and return any errors."""
        errors = []

        seen_sockets: Dict[SocketKey, str] = {}
        for connection in self.connections:
            if connection.parent_node_id not in self.nodes:
                errors.append(ValidationError(f"Connection references missing parent node: {connection.parent_node_id}"))
            if connection.child_node_id not in self.nodes:
                errors.append(ValidationError(f"Connection references missing child node: {connection.child_node_id}"))
            for key in (connection.parent_key, connection.child_key):
                if key in seen_sockets:
                    errors.append(ValidationError(f"Socket {key[0]}.{key[1]} is connected more than once"))
                seen_sockets[key] = connection.id

        if self._has_cycles():
            errors.append(ValidationError("Model contains circular connections"))

        return errors

    def _has_cycles(self) -> bool:
        """Check if the model has circular connections using an iterative DFS.

        Statement chains can be thousands of blocks long, so the walk keeps
        its own stack instead of recursing.
        """
        children: Dict[str, List[str]] = {}
        for connection in self.connections:
            children.setdefault(connection.parent_node_id, []).append(connection.child_node_id)

        visited = set()
        rec_stack = set()

        for root in self.nodes:
            if root in visited:
                continue
            visited.add(root)
            rec_stack.add(root)
            stack = [(root, iter(children.get(root, ())))]

            while stack:
                node_id, pending = stack[-1]
                child = next(pending, None)
                if child is None:
                    rec_stack.discard(node_id)
                    stack.pop()
                elif child in rec_stack:
                    return True
                elif child not in visited:
                    visited.add(child)
                    rec_stack.add(child)
                    stack.append((child, iter(children.get(child, ()))))
        return False
