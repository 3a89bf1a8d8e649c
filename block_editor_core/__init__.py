"""
Block Editor Core - turns generated Dart code into a connected block workspace.

This package parses best-effort Dart structure (classes, methods, variables),
projects it onto typed blocks wired into statement chains, and keeps a
Blockly-compatible XML form of the workspace in sync with every edit.
"""

__version__ = "0.1.0"
__author__ = "Block Editor Development Team"

from .models import (
    BlockNode, Connection, WorkspaceModel, Socket, SocketKind,
    FieldDescriptor, TextField, NumberField, DropdownField, ValidationError
)
from .declarations import ClassDeclaration, MethodDeclaration, VariableDeclaration
from .block_registry import BlockTypeRegistry, BlockDefinition, SocketDefinition
from .dart_parser import DartStructureParser, parse_structure
from .value_classifier import ClassifiedValue, classify_value
from .connection_manager import ConnectionManager, ConnectionCheck, can_connect, check_connection
from .change_notifier import ChangeNotifier, ThreadingScheduler, VirtualClock
from .graph_builder import GraphBuilder
from .workspace import Workspace
from .workspace_xml import workspace_to_xml, load_workspace_xml
from .code_extraction import extract_dart_code
from .config import WorkspaceConfig, LayoutConfig, ServerConfig
from .exceptions import (
    BlockEditorError, UnknownBlockTypeError, FieldValueError,
    WorkspaceDisposedError, SerializationError
)

__all__ = [
    "BlockNode",
    "Connection",
    "WorkspaceModel",
    "Socket",
    "SocketKind",
    "FieldDescriptor",
    "TextField",
    "NumberField",
    "DropdownField",
    "ValidationError",
    "ClassDeclaration",
    "MethodDeclaration",
    "VariableDeclaration",
    "BlockTypeRegistry",
    "BlockDefinition",
    "SocketDefinition",
    "DartStructureParser",
    "parse_structure",
    "ClassifiedValue",
    "classify_value",
    "ConnectionManager",
    "ConnectionCheck",
    "can_connect",
    "check_connection",
    "ChangeNotifier",
    "ThreadingScheduler",
    "VirtualClock",
    "GraphBuilder",
    "Workspace",
    "workspace_to_xml",
    "load_workspace_xml",
    "extract_dart_code",
    "WorkspaceConfig",
    "LayoutConfig",
    "ServerConfig",
    "BlockEditorError",
    "UnknownBlockTypeError",
    "FieldValueError",
    "WorkspaceDisposedError",
    "SerializationError",
]
