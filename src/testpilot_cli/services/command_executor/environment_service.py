"""Service for managing command execution environments."""

import os
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    import click

from testpilot_logging import get_cli_logger

logger = get_cli_logger(__name__)


class EnvironmentService:
    """Child process environments.

    The base environment is the CLI context's ``resolved_env`` when there is
    one, the current process environment otherwise.
    """

    def __init__(self, ctx: Optional["click.Context"] = None) -> None:
        self.ctx = ctx
        if ctx and hasattr(ctx.obj, "resolved_env"):
            self._base_env = ctx.obj.resolved_env.copy()
        else:
            self._base_env = dict(os.environ)

    @property
    def base_env(self) -> dict[str, str]:
        """Copy of the environment commands inherit."""
        return self._base_env.copy()

    def build_environment(
        self,
        env_overrides: dict[str, str] | None = None,
    ) -> dict[str, str] | None:
        """Build command environment with overrides.

        Parameters
        ----------
        env_overrides : dict[str, str] | None, optional
            Environment variables to add/override

        Returns
        -------
        dict[str, str] | None
            Complete environment or None for default
        """
        if not env_overrides:
            return None

        command_env = self._base_env.copy()
        command_env.update(env_overrides)

        logger.debug("Environment overrides: %s", list(env_overrides.keys()))
        return command_env

    def setup_python_environment(
        self,
        env: dict[str, str] | None = None,
        unbuffered: bool = True,
    ) -> dict[str, str]:
        """Set up Python-specific environment variables.

        Parameters
        ----------
        env : dict[str, str] | None, optional
            Base environment to modify
        unbuffered : bool, optional
            Whether to set PYTHONUNBUFFERED

        Returns
        -------
        dict[str, str]
            Environment with Python settings
        """
        env = self._base_env.copy() if env is None else env.copy()
        if unbuffered:
            env["PYTHONUNBUFFERED"] = "1"
        return env
