# checkin/core/service_base.py
"""
Common lifecycle for services that wrap an external client.

A service connects lazily on first use, reports its health in the
{"healthy", "status", "details"} shape the orchestrator aggregates, and
closes its client on shutdown.
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, TypeVar, Generic
import logging
from checkin.core.exceptions import ServiceError, ConfigurationError

ConfigType = TypeVar('ConfigType')


class ServiceConfig:
    """Marker base for service configuration dataclasses"""


class BaseService(ABC, Generic[ConfigType]):

    def __init__(self, config: Optional[ConfigType] = None, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.service_name = self.__class__.__name__
        self._client = None
        self._initialized = False

    @abstractmethod
    async def _initialize_client(self) -> Any:
        """Build and connect the client. May return None for a disabled service."""

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Health in the {"healthy", "status", "details"} shape"""

    async def initialize(self) -> None:
        """
        Connect the client. Safe to call repeatedly.

        Raises:
            ConfigurationError: Invalid configuration, raised as is
            ServiceError: Any other failure while connecting
        """
        if self._initialized:
            return

        self._validate_config()
        try:
            self._client = await self._initialize_client()
        except ConfigurationError:
            raise
        except Exception as e:
            self.logger.error(f"{self.service_name} failed to start: {e}", exc_info=True)
            raise ServiceError(
                f"Failed to initialize {self.service_name}",
                service_name=self.service_name,
                operation="initialize",
                details={'original_error': str(e), 'error_type': type(e).__name__}
            ) from e

        self._initialized = True
        self.logger.info(f"{self.service_name} ready")

    def _validate_config(self) -> None:
        """Hook for service-specific configuration checks"""
        if self.config is None:
            self.logger.debug(f"{self.service_name} has no configuration")

    async def ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def shutdown(self) -> None:
        """Close the client; errors are logged, never raised"""
        if not self._initialized:
            return

        try:
            await self._cleanup()
        except Exception:
            self.logger.error(f"Error while shutting down {self.service_name}", exc_info=True)
        finally:
            self._client = None
            self._initialized = False

    async def _cleanup(self) -> None:
        pass
