"""
Exceptions for the Block Editor Core.

Parse misses and rejected connections are never raised; these exceptions cover
misuse of the workspace API and malformed documents handed to the loader.
"""

from typing import Optional, Any, Dict


class BlockEditorError(Exception):
    """Base exception for all block editor errors."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class UnknownBlockTypeError(BlockEditorError):
    """Raised when a block type is not declared in the registry."""
    
    def __init__(self, block_type: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Unknown block type: {block_type}", details)
        self.block_type = block_type


class FieldValueError(BlockEditorError):
    """Raised when a field does not exist on a block or rejects a value."""
    
    def __init__(self, message: str, field_name: str, value: Any = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field_name = field_name
        self.value = value


class WorkspaceDisposedError(BlockEditorError):
    """Raised when a disposed workspace is used."""
    pass


class SerializationError(BlockEditorError):
    """Raised when a workspace document cannot be read or written."""
    pass
