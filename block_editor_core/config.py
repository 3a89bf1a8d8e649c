"""
Workspace configuration.

Values resolve from explicit arguments first, then environment variables
(``BLOCKEDITOR_*``), then hard-coded defaults.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def resolve_setting(env_var: str, default: str) -> str:
    """Environment → default resolution for a single setting."""
    env_val = os.environ.get(env_var, '').strip()
    if env_val:
        return env_val
    return default


def _resolve_bool(env_var: str, default: bool) -> bool:
    value = resolve_setting(env_var, '1' if default else '0')
    return value.lower() in ('1', 'true', 'yes', 'on')


@dataclass
class LayoutConfig:
    """Canvas offsets used when projecting declarations onto the workspace."""
    start_y: float = 50.0
    class_x: float = 50.0
    member_x: float = 100.0
    literal_x: float = 300.0
    member_y_offset: float = 100.0
    variable_spacing: float = 80.0
    method_spacing: float = 120.0
    class_spacing: float = 200.0
    row_height: float = 40.0
    cleanup_gap: float = 40.0


@dataclass
class WorkspaceConfig:
    """Workspace settings for a single editing session."""
    debounce_ms: int = 300
    grid_size: float = 20.0
    snap_to_grid: bool = True
    clean_up_after_build: bool = True
    export_filename: str = 'dart_blocks.xml'
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.debounce_ms < 0:
            raise ValueError("debounce_ms must not be negative")
        if self.grid_size <= 0:
            raise ValueError("grid_size must be positive")
        if not self.export_filename:
            raise ValueError("export_filename must not be empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> 'WorkspaceConfig':
        """Build a configuration from ``BLOCKEDITOR_*`` environment variables."""
        values: Dict[str, Any] = {
            'debounce_ms': int(resolve_setting('BLOCKEDITOR_DEBOUNCE_MS', '300')),
            'grid_size': float(resolve_setting('BLOCKEDITOR_GRID_SIZE', '20')),
            'snap_to_grid': _resolve_bool('BLOCKEDITOR_SNAP_TO_GRID', True),
            'clean_up_after_build': _resolve_bool('BLOCKEDITOR_CLEAN_UP', True),
            'export_filename': resolve_setting('BLOCKEDITOR_EXPORT_FILENAME', 'dart_blocks.xml'),
        }
        values.update(overrides)
        return cls(**values)


@dataclass
class ServerConfig:
    """Host settings for the web interface."""
    host: str = '0.0.0.0'
    port: int = 5002
    debug: bool = False
    secret_key: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'ServerConfig':
        return cls(
            host=resolve_setting('BLOCKEDITOR_HOST', '0.0.0.0'),
            port=int(resolve_setting('BLOCKEDITOR_PORT', '5002')),
            debug=_resolve_bool('BLOCKEDITOR_DEBUG', False),
            secret_key=resolve_setting('BLOCKEDITOR_SECRET_KEY', 'block-editor-secret-key'),
        )
