"""Base manager class."""

from pathlib import Path

from testpilot_cli.core.utils import find_repo_root
from testpilot_logging import get_cli_logger

logger = get_cli_logger(__name__)


class BaseManager:
    """Common root for managers working against one repository.

    Parameters
    ----------
    repo_root : Path | None
        Repository root, detected from the working directory when omitted
    """

    def __init__(self, repo_root: Path | None = None) -> None:
        self.repo_root = repo_root or find_repo_root()
        self._initialize()
        logger.debug("%s ready at %s", self.__class__.__name__, self.repo_root)

    def _initialize(self) -> None:
        """Hook for subclasses, run once the repo root is known."""
