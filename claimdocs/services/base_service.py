from abc import ABC, abstractmethod
from typing import Any, Optional

from claimdocs.core.exceptions import AppError
from claimdocs.repositories.base_repository import BaseRepository
from claimdocs.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseService(ABC):
    """Two-phase template for the services that move document bytes.

    ``validate`` runs synchronously and must reject a malformed request
    (missing file, missing token, unknown action arguments) before any
    storage object or database row exists. ``run`` then performs the side
    effects. Domain errors pass through untouched so the API layer can map
    them to status codes; anything else surfaces as a plain ``AppError``.
    """

    def __init__(self, repository: Optional[BaseRepository] = None):
        self.repository = repository
        self.logger = LOGGER

    async def execute(self, *args, **kwargs) -> Any:
        """Validate the request, then run it.

        Raises:
            AppError: Any domain error from ``validate`` or ``run``, or a
                wrapped unexpected failure
        """
        try:
            self.validate(*args, **kwargs)
            return await self.run(*args, **kwargs)

        except AppError:
            raise

        except Exception as e:
            self.logger.error(
                f"Document operation failed: {str(e)}",
                exc_info=True,
                extra={"service": self.__class__.__name__, "action": kwargs.get("action")}
            )
            raise AppError(f"Document operation failed: {str(e)}", original_error=e)

    def validate(self, *args, **kwargs):
        """Reject a request that cannot succeed; must not touch storage."""

    @abstractmethod
    async def run(self, *args, **kwargs) -> Any:
        """Store bytes and record rows for an already validated request."""
