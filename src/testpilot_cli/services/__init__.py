"""CLI Services module.

Services are organized into subpackages: ``command_executor`` for subprocess
handling and ``test`` for suite execution, parsing and reporting.
"""

from testpilot_cli.services.command_executor import CommandExecutor

__all__ = ["CommandExecutor"]
