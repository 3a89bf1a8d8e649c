"""
Connection validation and linking between block sockets.

``can_connect`` is a pure check over the workspace model; ``ConnectionManager``
performs the mutation. A rejected connection never raises: it is logged and
both sockets are left as they were.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Tuple

from .models import Connection, Socket, SocketKind, WorkspaceModel


logger = logging.getLogger(__name__)


class ConnectionCheck(Enum):
    """Outcome of validating a socket pair."""
    OK = "ok"
    MISSING_SOCKET = "missing_socket"
    SAME_BLOCK = "same_block"
    ALREADY_CONNECTED = "already_connected"
    KIND_MISMATCH = "kind_mismatch"
    TYPE_MISMATCH = "type_mismatch"
    WOULD_CYCLE = "would_cycle"


# parent-side kind -> child-side kind it pairs with
_PAIRINGS = {
    SocketKind.NEXT: SocketKind.PREVIOUS,
    SocketKind.STATEMENT_INPUT: SocketKind.PREVIOUS,
    SocketKind.VALUE_INPUT: SocketKind.OUTPUT,
}


def orient(a: Socket, b: Socket) -> Optional[Tuple[Socket, Socket]]:
    """Return the pair as (parent side, child side), or None if they cannot pair."""
    if _PAIRINGS.get(a.kind) == b.kind:
        return a, b
    if _PAIRINGS.get(b.kind) == a.kind:
        return b, a
    return None


def checks_compatible(parent: Socket, child: Socket) -> bool:
    """A ``None`` check on either side accepts anything; otherwise tags must overlap."""
    if parent.check is None or child.check is None:
        return True
    return bool(set(parent.check) & set(child.check))


def check_connection(model: WorkspaceModel, a: Socket, b: Socket) -> ConnectionCheck:
    """Validate connecting two sockets without touching the model."""
    if model.get_socket(a.key) != a or model.get_socket(b.key) != b:
        return ConnectionCheck.MISSING_SOCKET
    if a.node_id == b.node_id:
        return ConnectionCheck.SAME_BLOCK
    if model.is_connected(a.key) or model.is_connected(b.key):
        return ConnectionCheck.ALREADY_CONNECTED

    pair = orient(a, b)
    if pair is None:
        return ConnectionCheck.KIND_MISMATCH
    parent, child = pair

    if not checks_compatible(parent, child):
        return ConnectionCheck.TYPE_MISMATCH
    if model.is_ancestor(child.node_id, parent.node_id):
        return ConnectionCheck.WOULD_CYCLE
    return ConnectionCheck.OK


def can_connect(model: WorkspaceModel, a: Socket, b: Socket) -> bool:
    return check_connection(model, a, b) is ConnectionCheck.OK


class ConnectionManager:
    """Links and unlinks sockets in one workspace model."""

    def __init__(self, model: WorkspaceModel, on_change: Optional[Callable[[], None]] = None):
        self.model = model
        self.on_change = on_change

    def link(self, a: Optional[Socket], b: Optional[Socket]) -> Optional[Connection]:
        """Connect two sockets now; returns the new connection or None."""
        if a is None or b is None:
            logger.info("Connection skipped: missing socket")
            return None

        result = check_connection(self.model, a, b)
        if result is not ConnectionCheck.OK:
            logger.info("Connection rejected (%s): %s.%s -> %s.%s",
                        result.value, a.node_id, a.name, b.node_id, b.name)
            return None

        parent, child = orient(a, b)
        connection = Connection(
            parent_node_id=parent.node_id,
            parent_socket=parent.name,
            child_node_id=child.node_id,
            child_socket=child.name
        )
        self.model.add_connection(connection)
        logger.debug("Connected %s.%s -> %s.%s",
                     parent.node_id, parent.name, child.node_id, child.name)
        self._trigger_change()
        return connection

    async def connect(self, a: Optional[Socket], b: Optional[Socket]) -> bool:
        """Connect two sockets, yielding once so a renderer can settle.

        Always settles: unexpected failures are logged and reported as False.
        """
        try:
            connection = self.link(a, b)
        except Exception:
            logger.exception("Error connecting blocks")
            connection = None
        await asyncio.sleep(0)
        return connection is not None

    def disconnect(self, socket: Socket) -> bool:
        """Remove the connection touching a socket, if any."""
        connection = self.model.connection_at(socket.key)
        if connection is None:
            return False
        self.model.remove_connection(connection)
        self._trigger_change()
        return True

    def _trigger_change(self):
        if self.on_change:
            self.on_change()
