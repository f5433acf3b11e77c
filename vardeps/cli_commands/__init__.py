"""CLI command modules for vardeps."""

from vardeps.cli_commands.deps import register_deps_commands

__all__ = [
    "register_deps_commands",
]
