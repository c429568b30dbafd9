"""
PartsBox – electronic component recognition and inventory toolkit.

Shared utilities (config, logging, paths, errors) live at the top level;
recognition, inventory, session and smartbox hold the domain pieces.
"""

__all__ = [
    "config",
    "errors",
    "logging",
    "paths",
]
