"""agonda: workspace, primitive and plugin management for Agonda repositories."""

__version__ = "0.4.0"
