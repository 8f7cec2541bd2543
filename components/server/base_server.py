# components/server/base_server.py
"""
Base class for protocol servers.

Provides shared infrastructure every server needs:
- Server identity (name, version) for logging and the protocol handshake
- Structured logger integration
- Common status reporting
"""

from abc import ABC, abstractmethod
from typing import Any

from components.logging_system import EventCategory, EventSeverity, IncubatorLogger, get_logger


class BaseProtocolServer(ABC):
    """Base class for protocol servers.

    Subclasses must implement: running, start(), stop().
    """

    def __init__(self, name: str, version: str = "1.0.0"):
        self.name = name
        self.version = version
        self.logger: IncubatorLogger = get_logger(
            f"{self.__class__.__module__}.{name}",
            device=name,
        )

    @property
    @abstractmethod
    def running(self) -> bool: ...

    @abstractmethod
    async def start(self) -> Any: ...

    @abstractmethod
    async def stop(self) -> None: ...

    async def log_communication(
        self,
        message: str,
        severity: EventSeverity = EventSeverity.INFO,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Log a protocol event via the structured logger."""
        await self.logger.log_event(
            severity=severity,
            category=EventCategory.COMMUNICATION,
            message=message,
            data=data or {},
        )

    def get_status(self) -> dict[str, Any]:
        """Get server status. Override to add protocol-specific fields."""
        return {
            "running": self.running,
            "name": self.name,
            "version": self.version,
        }
