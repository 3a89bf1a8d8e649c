"""
Tests for connection validation and linking.
"""

import asyncio
import logging

import pytest
from block_editor_core.block_registry import (
    BlockTypeRegistry, DART_CLASS, DART_METHOD, DART_VARIABLE, DART_IF,
    DART_STRING, DART_BOOLEAN, DART_NUMBER, BODY, VALUE, CONDITION
)
from block_editor_core.connection_manager import (
    ConnectionManager, ConnectionCheck, can_connect, check_connection, checks_compatible, orient
)
from block_editor_core.models import WorkspaceModel, Socket, SocketKind


@pytest.fixture
def registry():
    return BlockTypeRegistry()


@pytest.fixture
def model():
    return WorkspaceModel()


def _add(model, registry, block_type):
    node = registry.create_node(block_type)
    model.add_node(node)
    return node


class TestCheckConnection:
    """Test cases for the pure compatibility check."""

    def test_statement_input_accepts_statement(self, model, registry):
        """Test a class body accepts a variable block."""
        cls = _add(model, registry, DART_CLASS)
        var = _add(model, registry, DART_VARIABLE)
        assert check_connection(model, cls.get_socket(BODY), var.previous_socket) is ConnectionCheck.OK
        assert can_connect(model, var.previous_socket, cls.get_socket(BODY))

    def test_check_does_not_mutate(self, model, registry):
        """Test validation leaves the edge set untouched."""
        cls = _add(model, registry, DART_CLASS)
        var = _add(model, registry, DART_VARIABLE)
        can_connect(model, cls.get_socket(BODY), var.previous_socket)
        assert model.connections == []

    def test_untyped_value_input_accepts_any_output(self, model, registry):
        """Test a None check accepts every output type."""
        var = _add(model, registry, DART_VARIABLE)
        for block_type in (DART_STRING, DART_NUMBER, DART_BOOLEAN):
            literal = _add(model, registry, block_type)
            assert can_connect(model, var.get_socket(VALUE), literal.output_socket)

    def test_typed_input_rejects_other_types(self, model, registry):
        """Test a Boolean condition rejects a String output."""
        if_block = _add(model, registry, DART_IF)
        text = _add(model, registry, DART_STRING)
        flag = _add(model, registry, DART_BOOLEAN)
        assert check_connection(model, if_block.get_socket(CONDITION), text.output_socket) \
            is ConnectionCheck.TYPE_MISMATCH
        assert can_connect(model, if_block.get_socket(CONDITION), flag.output_socket)

    def test_kind_mismatch(self, model, registry):
        """Test statement sockets do not pair with value sockets."""
        var = _add(model, registry, DART_VARIABLE)
        method = _add(model, registry, DART_METHOD)
        literal = _add(model, registry, DART_STRING)
        assert check_connection(model, method.next_socket, literal.output_socket) \
            is ConnectionCheck.KIND_MISMATCH
        assert check_connection(model, var.next_socket, method.next_socket) \
            is ConnectionCheck.KIND_MISMATCH

    def test_same_block(self, model, registry):
        """Test a block cannot connect to itself."""
        var = _add(model, registry, DART_VARIABLE)
        assert check_connection(model, var.next_socket, var.previous_socket) \
            is ConnectionCheck.SAME_BLOCK

    def test_missing_socket(self, model, registry):
        """Test sockets of blocks outside the model are rejected."""
        cls = _add(model, registry, DART_CLASS)
        stray = registry.create_node(DART_VARIABLE)
        assert check_connection(model, cls.get_socket(BODY), stray.previous_socket) \
            is ConnectionCheck.MISSING_SOCKET

    def test_would_cycle(self, model, registry):
        """Test a block cannot attach below its own descendant."""
        outer = _add(model, registry, DART_METHOD)
        inner = _add(model, registry, DART_METHOD)
        manager = ConnectionManager(model)
        assert manager.link(outer.get_socket(BODY), inner.previous_socket) is not None

        assert check_connection(model, inner.next_socket, outer.previous_socket) \
            is ConnectionCheck.WOULD_CYCLE

    def test_checks_compatible(self):
        """Test a None check on either side accepts anything, otherwise tags must overlap."""
        condition = Socket('a', CONDITION, SocketKind.VALUE_INPUT, ('Boolean',))
        untyped_output = Socket('b', 'output', SocketKind.OUTPUT, None)
        multi_input = Socket('c', VALUE, SocketKind.VALUE_INPUT, ('Number', 'String'))
        text_output = Socket('d', 'output', SocketKind.OUTPUT, ('String',))
        list_output = Socket('e', 'output', SocketKind.OUTPUT, ('String', 'List'))

        assert checks_compatible(condition, untyped_output)
        assert checks_compatible(multi_input, text_output)
        assert not checks_compatible(condition, list_output)

    def test_orient(self):
        """Test pairs are ordered parent side first."""
        parent = Socket('a', 'next', SocketKind.NEXT)
        child = Socket('b', 'previous', SocketKind.PREVIOUS)
        assert orient(child, parent) == (parent, child)
        assert orient(parent, parent) is None


class TestConnectionManager:
    """Test cases for linking and unlinking."""

    def test_link_records_connection(self, model, registry):
        """Test a successful link marks both sockets connected."""
        changes = []
        manager = ConnectionManager(model, on_change=lambda: changes.append(1))
        cls = _add(model, registry, DART_CLASS)
        var = _add(model, registry, DART_VARIABLE)

        connection = manager.link(var.previous_socket, cls.get_socket(BODY))

        assert connection.parent_node_id == cls.id
        assert connection.child_node_id == var.id
        assert model.is_connected(cls.get_socket(BODY).key)
        assert model.is_connected(var.previous_socket.key)
        assert changes == [1]

    def test_rejected_link_leaves_model_unchanged(self, model, registry, caplog):
        """Test a rejected link is logged and changes nothing."""
        changes = []
        manager = ConnectionManager(model, on_change=lambda: changes.append(1))
        if_block = _add(model, registry, DART_IF)
        text = _add(model, registry, DART_STRING)

        with caplog.at_level(logging.INFO, logger='block_editor_core.connection_manager'):
            assert manager.link(if_block.get_socket(CONDITION), text.output_socket) is None

        assert model.connections == []
        assert changes == []
        assert 'type_mismatch' in caplog.text

    def test_link_busy_socket(self, model, registry):
        """Test an occupied socket refuses a second block."""
        manager = ConnectionManager(model)
        cls = _add(model, registry, DART_CLASS)
        first = _add(model, registry, DART_VARIABLE)
        second = _add(model, registry, DART_VARIABLE)

        assert manager.link(cls.get_socket(BODY), first.previous_socket) is not None
        assert manager.link(cls.get_socket(BODY), second.previous_socket) is None
        assert model.child_at(cls.get_socket(BODY).key) is first

    def test_link_missing_socket(self, model, registry):
        """Test a None socket is skipped."""
        manager = ConnectionManager(model)
        cls = _add(model, registry, DART_CLASS)
        assert manager.link(cls.previous_socket, cls.get_socket(BODY)) is None

    def test_connect_settles(self, model, registry):
        """Test the async connect reports success."""
        manager = ConnectionManager(model)
        cls = _add(model, registry, DART_CLASS)
        var = _add(model, registry, DART_VARIABLE)
        assert asyncio.run(manager.connect(cls.get_socket(BODY), var.previous_socket)) is True
        assert asyncio.run(manager.connect(cls.get_socket(BODY), var.previous_socket)) is False

    def test_connect_settles_on_failure(self, model, registry, caplog):
        """Test an unexpected error is logged and reported as False."""
        def explode():
            raise RuntimeError("renderer went away")

        manager = ConnectionManager(model, on_change=explode)
        cls = _add(model, registry, DART_CLASS)
        var = _add(model, registry, DART_VARIABLE)

        result = asyncio.run(manager.connect(cls.get_socket(BODY), var.previous_socket))

        assert result is False
        assert 'Error connecting blocks' in caplog.text

    def test_disconnect(self, model, registry):
        """Test disconnecting frees both sockets."""
        manager = ConnectionManager(model)
        cls = _add(model, registry, DART_CLASS)
        var = _add(model, registry, DART_VARIABLE)
        manager.link(cls.get_socket(BODY), var.previous_socket)

        assert manager.disconnect(var.previous_socket) is True
        assert not model.is_connected(cls.get_socket(BODY).key)
        assert manager.disconnect(var.previous_socket) is False
