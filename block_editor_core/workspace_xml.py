"""
Blockly-compatible XML serialization of the workspace.

Top-level blocks carry their canvas position; attached blocks are nested
under ``<value>``, ``<statement>`` and ``<next>`` elements of their parent, so
positions of attached blocks are not preserved across a save/load cycle.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import replace
from typing import List, Optional, Tuple

from .block_registry import BlockTypeRegistry
from .connection_manager import ConnectionManager
from .exceptions import SerializationError
from .models import BlockNode, SocketKind, WorkspaceModel, xml_safe_text


logger = logging.getLogger(__name__)

XMLNS = 'https://developers.google.com/blockly/xml'


def _format_coordinate(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def workspace_to_dom(model: WorkspaceModel) -> ET.Element:
    """Build the XML tree of every block in the model."""
    root = ET.Element('xml', {'xmlns': XMLNS})
    for node in model.top_blocks():
        root.append(_chain_to_dom(model, node, top=True))
    return root


def workspace_to_xml(model: WorkspaceModel) -> str:
    """Serialize the model to XML text."""
    return ET.tostring(workspace_to_dom(model), encoding='unicode')


def _chain_to_dom(model: WorkspaceModel, node: BlockNode, top: bool = False) -> ET.Element:
    """Serialize a block and the blocks chained after it through ``<next>``."""
    head: Optional[ET.Element] = None
    previous_el: Optional[ET.Element] = None
    seen = set()
    current: Optional[BlockNode] = node

    while current is not None and current.id not in seen:
        seen.add(current.id)
        element = _block_to_dom(model, current, top and head is None)
        if previous_el is None:
            head = element
        else:
            ET.SubElement(previous_el, 'next').append(element)
        previous_el = element
        next_socket = current.next_socket
        current = model.child_at(next_socket.key) if next_socket else None

    return head


def _block_to_dom(model: WorkspaceModel, node: BlockNode, top: bool) -> ET.Element:
    element = ET.Element('block', {'type': node.block_type, 'id': node.id})
    if top:
        element.set('x', _format_coordinate(node.position[0]))
        element.set('y', _format_coordinate(node.position[1]))

    for name, descriptor in node.field_descriptors.items():
        field_el = ET.SubElement(element, 'field', {'name': name})
        field_el.text = xml_safe_text(descriptor.to_text(node.fields.get(name, descriptor.default)))

    if node.data:
        ET.SubElement(element, 'data').text = xml_safe_text(node.data)

    for socket in node.input_sockets():
        child = model.child_at(socket.key)
        if child is None:
            continue
        tag = 'value' if socket.kind == SocketKind.VALUE_INPUT else 'statement'
        input_el = ET.SubElement(element, tag, {'name': socket.name})
        input_el.append(_chain_to_dom(model, child))

    return element


def load_workspace_xml(text: str,
                       registry: BlockTypeRegistry,
                       model: WorkspaceModel,
                       connections: ConnectionManager) -> List[BlockNode]:
    """Recreate the blocks of an XML document in ``model``; returns top blocks."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise SerializationError(f"Malformed workspace XML: {e}", {'position': e.position})

    if _local_name(root.tag) != 'xml':
        raise SerializationError(f"Expected <xml> root element, got <{_local_name(root.tag)}>")

    loaded = []
    for element in root:
        if _local_name(element.tag) == 'block':
            loaded.append(_load_chain(element, registry, model, connections, top=True))
    return loaded


def _load_chain(element: ET.Element, registry: BlockTypeRegistry, model: WorkspaceModel,
                connections: ConnectionManager, top: bool = False) -> BlockNode:
    head: Optional[BlockNode] = None
    previous: Optional[BlockNode] = None
    current: Optional[ET.Element] = element

    while current is not None:
        node = _load_block(current, registry, model, connections, top and head is None)
        if previous is None:
            head = node
        elif connections.link(previous.next_socket, node.previous_socket) is None:
            logger.warning("Dropped <next> link from %s to %s", previous.id, node.id)
        previous = node
        current = _next_block_element(current)

    return head


def _next_block_element(element: ET.Element) -> Optional[ET.Element]:
    for child in element:
        if _local_name(child.tag) == 'next':
            for block_el in child:
                if _local_name(block_el.tag) == 'block':
                    return block_el
    return None


def _load_block(element: ET.Element, registry: BlockTypeRegistry, model: WorkspaceModel,
                connections: ConnectionManager, top: bool) -> BlockNode:
    block_type = element.get('type')
    if not block_type:
        raise SerializationError("Block element without a type attribute")

    position = _read_position(element) if top else (0.0, 0.0)
    node = registry.create_node(block_type, position)
    block_id = element.get('id')
    if block_id and block_id not in model.nodes:
        node = _with_id(node, block_id)
    model.add_node(node)

    for child in element:
        tag = _local_name(child.tag)
        if tag == 'field':
            name = child.get('name', '')
            node.set_field(node.descriptor(name), child.text or '')
        elif tag == 'data':
            node.data = child.text or None
        elif tag in ('value', 'statement'):
            socket = node.get_socket(child.get('name', ''))
            for block_el in child:
                if _local_name(block_el.tag) != 'block':
                    continue
                attached = _load_chain(block_el, registry, model, connections)
                target = attached.output_socket if tag == 'value' else attached.previous_socket
                if connections.link(socket, target) is None:
                    logger.warning("Dropped <%s name=%s> link on block %s",
                                   tag, child.get('name'), node.id)

    return node


def _read_position(element: ET.Element) -> Tuple[float, float]:
    try:
        return float(element.get('x', 0)), float(element.get('y', 0))
    except ValueError:
        return 0.0, 0.0


def _with_id(node: BlockNode, block_id: str) -> BlockNode:
    """Re-key a freshly created block and its sockets to a stored id."""
    node.sockets = {name: replace(socket, node_id=block_id) for name, socket in node.sockets.items()}
    node.id = block_id
    return node
