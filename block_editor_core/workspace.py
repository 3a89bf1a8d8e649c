"""
Workspace class for block graph state management.

This module provides the Workspace class which owns the live block graph of one
editing session. It rebuilds the graph from source code, applies edits, keeps
the serialized XML form in sync through the change notifier, and releases
everything on dispose.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from .block_registry import BlockTypeRegistry
from .change_notifier import ChangeNotifier, TimerScheduler
from .config import WorkspaceConfig
from .connection_manager import ConnectionManager
from .dart_parser import DartStructureParser
from .exceptions import WorkspaceDisposedError
from .graph_builder import GraphBuilder
from .models import (
    BlockNode, Connection, FieldDescriptor, Socket, ValidationError, WorkspaceModel, xml_safe_text
)
from .workspace_xml import load_workspace_xml, workspace_to_xml


logger = logging.getLogger(__name__)


class Workspace:
    """Owns the block graph of one editing session."""

    def __init__(self,
                 config: Optional[WorkspaceConfig] = None,
                 registry: Optional[BlockTypeRegistry] = None,
                 on_blocks_change: Optional[Callable[[str], None]] = None,
                 scheduler: Optional[TimerScheduler] = None):
        self.config = config or WorkspaceConfig()
        self.registry = registry or BlockTypeRegistry()
        self.model = WorkspaceModel()
        self.connections = ConnectionManager(self.model, on_change=self._trigger_model_changed)
        self.notifier = ChangeNotifier(
            self.export_xml, on_blocks_change,
            delay_ms=self.config.debounce_ms, scheduler=scheduler
        )
        self.parser = DartStructureParser()
        self.builder = GraphBuilder(self, self.config.layout)

        self.last_processed_code = ''
        self.needs_render = False
        self._disposed = False

        # Event callbacks
        self.on_model_changed: Optional[Callable[[], None]] = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    # Block mutations

    def create_block(self, block_type: str, position: Tuple[float, float] = (0.0, 0.0)) -> BlockNode:
        """Instantiate a registered block at a canvas position."""
        self._ensure_alive()
        node = self.registry.create_node(block_type, position)
        self.model.add_node(node)
        self._trigger_model_changed()
        return node

    def remove_block(self, node_id: str) -> bool:
        """Remove a block and its connections."""
        self._ensure_alive()
        success = self.model.remove_node(node_id)
        if success:
            self._trigger_model_changed()
        return success

    def set_field(self, block: BlockNode, descriptor: FieldDescriptor, value: Any) -> Any:
        """Set a field on a block through its descriptor."""
        self._ensure_alive()
        stored = block.set_field(descriptor, value)
        self._trigger_model_changed()
        return stored

    def set_data(self, block: BlockNode, data: Optional[str]):
        self._ensure_alive()
        block.data = xml_safe_text(data) if data is not None else None
        self._trigger_model_changed()

    def move_block(self, node_id: str, new_position: Tuple[float, float]) -> bool:
        """Move a block to a new position."""
        self._ensure_alive()
        if node_id not in self.model.nodes:
            return False

        if self.config.snap_to_grid:
            new_position = self._snap_to_grid(new_position)

        self.model.nodes[node_id].position = new_position
        self._trigger_model_changed()
        return True

    async def connect(self, a: Optional[Socket], b: Optional[Socket]) -> bool:
        self._ensure_alive()
        return await self.connections.connect(a, b)

    def link(self, a: Optional[Socket], b: Optional[Socket]) -> Optional[Connection]:
        """Connect two sockets synchronously."""
        self._ensure_alive()
        return self.connections.link(a, b)

    def disconnect(self, socket: Socket) -> bool:
        self._ensure_alive()
        return self.connections.disconnect(socket)

    # Rebuild from source

    def load_code(self, code: str) -> bool:
        """Rebuild the graph from source code; see ``load_code_async``.

        Runs its own event loop through ``asyncio.run``, so it raises
        RuntimeError inside a running loop; async callers should await
        ``load_code_async`` instead.
        """
        return asyncio.run(self.load_code_async(code))

    async def load_code_async(self, code: str) -> bool:
        """Clear the workspace and project ``code`` onto it.

        Returns False when the code is empty or identical to the last code
        processed, in which case the workspace is left untouched.
        """
        self._ensure_alive()
        if not code or code == self.last_processed_code:
            return False

        self._clear_blocks()
        structure = self.parser.parse(code)

        if not structure:
            logger.info("No valid structure found to convert to blocks")
        else:
            await self.builder.build(structure)
            if self.config.clean_up_after_build:
                self.clean_up()

        self.last_processed_code = code
        return True

    def clean_up(self):
        """Stack top-level blocks in one column, top to bottom, without overlap."""
        self._ensure_alive()
        layout = self.config.layout
        top_blocks = sorted(self.model.top_blocks(), key=lambda n: (n.position[1], n.position[0]))
        cursor_y = layout.start_y
        for node in top_blocks:
            position = (layout.class_x, cursor_y)
            if self.config.snap_to_grid:
                position = self._snap_to_grid(position)
            node.position = position
            height = len(self.model.descendants(node.id)) * layout.row_height
            cursor_y = position[1] + height + layout.cleanup_gap
        self._trigger_model_changed()

    def clear(self):
        """Remove every block and forget the last processed code."""
        self._ensure_alive()
        self._clear_blocks()
        self.last_processed_code = ''

    def _clear_blocks(self):
        self.model.clear()
        self._trigger_model_changed()

    # Serialization

    def export_xml(self) -> str:
        """Serialize the whole workspace to Blockly XML."""
        return workspace_to_xml(self.model)

    def export_document(self) -> Tuple[str, bytes]:
        """Return the download file name and the XML payload."""
        return self.config.export_filename, self.export_xml().encode('utf-8')

    def load_xml(self, text: str) -> List[BlockNode]:
        """Replace the workspace content with the blocks of an XML document.

        The document is loaded into a scratch model first, so a malformed
        document leaves the current graph untouched.
        """
        self._ensure_alive()
        scratch = WorkspaceModel()
        top_blocks = load_workspace_xml(text, self.registry, scratch, ConnectionManager(scratch))

        self.model.nodes = scratch.nodes
        self.model.connections = scratch.connections
        self.model.socket_index = scratch.socket_index
        self.last_processed_code = ''
        self._trigger_model_changed()
        return top_blocks

    # State

    def mark_for_render(self):
        self.needs_render = True

    def render(self) -> bool:
        """Acknowledge a pending render; returns whether one was pending."""
        pending = self.needs_render
        self.needs_render = False
        return pending

    def validate_model(self) -> List[ValidationError]:
        return self.model.validate_model()

    def get_workspace_state(self) -> Dict[str, Any]:
        """Get the current state of the workspace."""
        return {
            'model': {
                'block_count': len(self.model.nodes),
                'connection_count': len(self.model.connections),
                'top_block_count': len(self.model.top_blocks()),
            },
            'settings': {
                'debounce_ms': self.config.debounce_ms,
                'grid_size': self.config.grid_size,
                'snap_to_grid': self.config.snap_to_grid,
            },
            'has_code': bool(self.last_processed_code),
            'needs_render': self.needs_render,
            'notification_pending': self.notifier.pending,
            'disposed': self._disposed,
        }

    def dispose(self):
        """Release the graph and listeners; the workspace cannot be used afterwards."""
        if self._disposed:
            return
        self.notifier.dispose()
        self.model.clear()
        self.on_model_changed = None
        self.connections.on_change = None
        self._disposed = True

    def _ensure_alive(self):
        if self._disposed:
            raise WorkspaceDisposedError("Workspace has been disposed")

    def _snap_to_grid(self, position: Tuple[float, float]) -> Tuple[float, float]:
        """Snap a position to the grid."""
        x, y = position
        snapped_x = round(x / self.config.grid_size) * self.config.grid_size
        snapped_y = round(y / self.config.grid_size) * self.config.grid_size
        return snapped_x, snapped_y

    def _trigger_model_changed(self):
        """Schedule a settled notification and fire the model changed callback."""
        self.notifier.notify()
        if self.on_model_changed:
            self.on_model_changed()
