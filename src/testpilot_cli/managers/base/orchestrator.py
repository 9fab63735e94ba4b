"""Base orchestrator holding a registry of services."""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, TypeVar

import click

from testpilot_cli.managers.base.manager import BaseManager
from testpilot_cli.managers.base.service import BaseService
from testpilot_logging import get_cli_logger

if TYPE_CHECKING:
    from testpilot_cli.services.command_executor import CommandExecutor

logger = get_cli_logger(__name__)

S = TypeVar("S", bound=BaseService)


class BaseOrchestrator(BaseManager):
    """Manager that wires services sharing one repo root and executor.

    Subclasses register their services in :meth:`_register_services`; each
    service class is instantiated once and looked up by type afterwards.

    Parameters
    ----------
    repo_root : Path | None
        Repository root handed to every service
    command_executor : CommandExecutor | None
        Executor shared by the services, created lazily when omitted
    """

    def __init__(
        self,
        repo_root: Path | None = None,
        command_executor: Optional["CommandExecutor"] = None,
    ) -> None:
        self._command_executor = command_executor
        self._services: dict[type[BaseService], BaseService] = {}
        super().__init__(repo_root=repo_root)

    def _initialize(self) -> None:
        self._register_services()

    def _register_services(self) -> None:
        """Register the services this orchestrator uses."""

    @property
    def command_executor(self) -> "CommandExecutor":
        """Shared command executor, bound to the current click context if any."""
        if self._command_executor is None:
            from testpilot_cli.services.command_executor import CommandExecutor

            self._command_executor = CommandExecutor(
                ctx=click.get_current_context(silent=True),
            )
        return self._command_executor

    def register_service(self, service_class: type[S], **kwargs: Any) -> S:
        """Instantiate ``service_class`` once and keep it.

        Parameters
        ----------
        service_class : type[S]
            Service to create
        **kwargs : Any
            Extra constructor arguments besides the repo root and executor

        Returns
        -------
        S
            The registered instance, the existing one on repeated calls
        """
        existing = self._services.get(service_class)
        if existing is not None:
            return existing  # type: ignore[return-value]

        service = service_class(
            repo_root=self.repo_root,
            command_executor=self.command_executor,
            **kwargs,
        )
        self._services[service_class] = service
        logger.debug("%s registered %s", self.__class__.__name__, service_class.__name__)
        return service

    def get_service(self, service_class: type[S]) -> S:
        """Registered instance of ``service_class``.

        Raises
        ------
        ValueError
            If the service was never registered
        """
        try:
            return self._services[service_class]  # type: ignore[return-value]
        except KeyError:
            msg = (
                f"{service_class.__name__} is not registered in "
                f"{self.__class__.__name__}"
            )
            raise ValueError(msg) from None
