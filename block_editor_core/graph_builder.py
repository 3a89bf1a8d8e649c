"""
Graph Builder for projecting parsed declarations onto the block workspace.
"""

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .block_registry import (
    DART_CLASS, DART_METHOD, DART_VARIABLE, BODY, VALUE,
    CLASS_NAME, RETURN_TYPE, METHOD_NAME, PARAMETERS, VAR_TYPE, VAR_NAME
)
from .config import LayoutConfig
from .declarations import ClassDeclaration, MethodDeclaration, VariableDeclaration
from .models import BlockNode, Socket
from .value_classifier import classify_value

if TYPE_CHECKING:
    from .workspace import Workspace


logger = logging.getLogger(__name__)


class BlockBuilder:
    """Base class for building blocks from declaration records."""

    def __init__(self, block_type: str):
        self.block_type = block_type

    def build_block(self, workspace: 'Workspace', declaration: Any, context: Dict[str, Any]) -> BlockNode:
        """Create the block for a declaration at ``context['position']``."""
        raise NotImplementedError("Subclasses must implement build_block")


class ClassBlockBuilder(BlockBuilder):
    """Builds class blocks from class declarations."""

    def __init__(self):
        super().__init__(DART_CLASS)

    def build_block(self, workspace: 'Workspace', declaration: ClassDeclaration,
                    context: Dict[str, Any]) -> BlockNode:
        block = workspace.create_block(self.block_type, context['position'])
        workspace.set_field(block, CLASS_NAME, declaration.name)
        return block


class VariableBlockBuilder(BlockBuilder):
    """Builds variable blocks; the initializer becomes an attached literal block."""

    def __init__(self):
        super().__init__(DART_VARIABLE)

    def build_block(self, workspace: 'Workspace', declaration: VariableDeclaration,
                    context: Dict[str, Any]) -> BlockNode:
        block = workspace.create_block(self.block_type, context['position'])
        workspace.set_field(block, VAR_TYPE, declaration.var_type)
        workspace.set_field(block, VAR_NAME, declaration.name)
        return block

    def build_literal(self, workspace: 'Workspace', expression: str,
                      context: Dict[str, Any]) -> BlockNode:
        """Create the literal block for an initializer expression."""
        classified = classify_value(expression)
        literal = workspace.create_block(classified.block_type, context['literal_position'])
        if classified.field is not None:
            workspace.set_field(literal, classified.field, classified.value)
        else:
            workspace.set_data(literal, classified.value)
        return literal


class MethodBlockBuilder(BlockBuilder):
    """Builds method blocks from method signatures."""

    def __init__(self):
        super().__init__(DART_METHOD)

    def build_block(self, workspace: 'Workspace', declaration: MethodDeclaration,
                    context: Dict[str, Any]) -> BlockNode:
        block = workspace.create_block(self.block_type, context['position'])
        workspace.set_field(block, RETURN_TYPE, declaration.return_type)
        workspace.set_field(block, METHOD_NAME, declaration.name)
        if declaration.parameters:
            workspace.set_field(block, PARAMETERS, declaration.parameters)
        return block


class GraphBuilder:
    """Turns class declarations into connected blocks on a workspace.

    Inside each class every variable is emitted before any method, whatever
    the source order; both groups keep their own source order.
    """

    def __init__(self, workspace: 'Workspace', layout: Optional[LayoutConfig] = None):
        self.workspace = workspace
        self.layout = layout or LayoutConfig()
        self.class_builder = ClassBlockBuilder()
        self.variable_builder = VariableBlockBuilder()
        self.method_builder = MethodBlockBuilder()

    async def build(self, structure: List[ClassDeclaration]) -> List[BlockNode]:
        """Create and wire the blocks for every class; returns the class blocks."""
        class_blocks: List[BlockNode] = []
        if not structure:
            return class_blocks

        layout = self.layout
        context: Dict[str, Any] = {'position_y': layout.start_y}

        for declaration in structure:
            if not isinstance(declaration, ClassDeclaration):
                continue
            class_blocks.append(await self._build_class(declaration, context))
            context['position_y'] += layout.class_spacing

        self.workspace.mark_for_render()
        logger.info("Built %d class block(s) with %d block(s) in total",
                    len(class_blocks), len(self.workspace.model.nodes))
        return class_blocks

    async def _build_class(self, declaration: ClassDeclaration, context: Dict[str, Any]) -> BlockNode:
        layout = self.layout
        context['position'] = (layout.class_x, context['position_y'])
        class_block = self.class_builder.build_block(self.workspace, declaration, context)

        body_socket: Optional[Socket] = class_block.get_socket(BODY)
        previous_block: Optional[BlockNode] = None

        for variable in declaration.variables:
            member_y = context['position_y'] + layout.member_y_offset
            context['position'] = (layout.member_x, member_y)
            context['literal_position'] = (layout.literal_x, member_y)
            block = self.variable_builder.build_block(self.workspace, variable, context)

            if variable.value:
                literal = self.variable_builder.build_literal(self.workspace, variable.value, context)
                await self.workspace.connect(block.get_socket(VALUE), literal.output_socket)

            body_socket = await self._chain(block, body_socket, previous_block)
            previous_block = block
            context['position_y'] += layout.variable_spacing

        for method in declaration.methods:
            context['position'] = (layout.member_x, context['position_y'] + layout.member_y_offset)
            block = self.method_builder.build_block(self.workspace, method, context)

            body_socket = await self._chain(block, body_socket, previous_block)
            previous_block = block
            context['position_y'] += layout.method_spacing

        return class_block

    async def _chain(self, block: BlockNode, body_socket: Optional[Socket],
                     previous_block: Optional[BlockNode]) -> Optional[Socket]:
        """Attach a member to the running chain and return the next open socket."""
        if body_socket is not None and block.previous_socket is not None:
            await self.workspace.connect(body_socket, block.previous_socket)
            return block.next_socket
        if previous_block is not None and previous_block.next_socket is not None \
                and block.previous_socket is not None:
            await self.workspace.connect(previous_block.next_socket, block.previous_socket)
        return body_socket
