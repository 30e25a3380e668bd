"""CLI command extensions for agonda."""

from .config_commands import ConfigCommands
from .health_commands import HealthCommands
from .marketplace_commands import MarketplaceCommands
from .plugin_commands import PluginCommands
from .primitives_commands import PrimitivesCommands
from .status_commands import StatusCommands
from .workbench_commands import WorkbenchCommands
from .workspace_commands import WorkspaceCommands

__all__ = [
    "ConfigCommands",
    "HealthCommands",
    "MarketplaceCommands",
    "PluginCommands",
    "PrimitivesCommands",
    "StatusCommands",
    "WorkbenchCommands",
    "WorkspaceCommands",
]
