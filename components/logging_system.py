# components/logging_system.py
"""
Structured logging for the incubator simulator.

Every component logs through an IncubatorLogger obtained from get_logger().
Plain messages go to stderr stamped with simulation time (stdout is the
tool server's protocol channel). Structured events carry a severity and a
category; tool actions and alarms are also kept in an in-memory audit
trail. With a log directory configured, each device writes a rotating
JSON-lines file as well.
"""

import asyncio
import json
import logging
import logging.handlers
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from components.time.simulation_clock import SimulationClock

__all__ = [
    "EventSeverity",
    "EventCategory",
    "AlarmPriority",
    "AlarmState",
    "LogEntry",
    "SimTimeFormatter",
    "JSONFormatter",
    "IncubatorLogger",
    "configure_logging",
    "get_logger",
]

JSON_LOG_MAX_BYTES = 10 * 1024 * 1024
JSON_LOG_BACKUPS = 5


class EventSeverity(Enum):
    """Syslog-style severities; a lower value is more severe."""

    CRITICAL = 1
    ALERT = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7

    @property
    def level(self) -> int:
        """Matching stdlib logging level."""
        return _SEVERITY_LEVELS[self]

    @classmethod
    def from_level(cls, levelno: int) -> "EventSeverity":
        for severity in (cls.CRITICAL, cls.ERROR, cls.WARNING, cls.INFO):
            if levelno >= severity.level:
                return severity
        return cls.DEBUG


_SEVERITY_LEVELS = {
    EventSeverity.CRITICAL: logging.CRITICAL,
    EventSeverity.ALERT: logging.CRITICAL,
    EventSeverity.ERROR: logging.ERROR,
    EventSeverity.WARNING: logging.WARNING,
    EventSeverity.NOTICE: logging.INFO,
    EventSeverity.INFO: logging.INFO,
    EventSeverity.DEBUG: logging.DEBUG,
}


class EventCategory(Enum):
    PROCESS = "process"  # chamber dynamics, controller decisions
    ALARM = "alarm"
    AUDIT = "audit"  # panel and tool actions that change state
    SYSTEM = "system"  # start-up, shutdown, configuration
    COMMUNICATION = "communication"  # tool protocol traffic
    DIAGNOSTIC = "diagnostic"


class AlarmPriority(Enum):
    CRITICAL = 1
    HIGH = 2
    MEDIUM = 3
    LOW = 4


class AlarmState(Enum):
    ACTIVE = "ACTIVE"
    CLEARED = "CLEARED"


_ALARM_SEVERITY = {
    AlarmPriority.CRITICAL: EventSeverity.CRITICAL,
    AlarmPriority.HIGH: EventSeverity.ALERT,
    AlarmPriority.MEDIUM: EventSeverity.WARNING,
    AlarmPriority.LOW: EventSeverity.NOTICE,
}

# Categories retained in the audit trail
_TRAIL_CATEGORIES = (EventCategory.AUDIT, EventCategory.ALARM)


@dataclass
class LogEntry:
    """One structured event."""

    simulation_time: float
    wall_time: float
    severity: EventSeverity
    category: EventCategory
    message: str

    device: str = ""
    component: str = ""
    user: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    alarm_priority: AlarmPriority | None = None
    alarm_state: AlarmState | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialisable form; empty optional fields are left out."""
        result: dict[str, Any] = {
            "simulation_time": self.simulation_time,
            "wall_time": self.wall_time,
            "severity": self.severity.name,
            "category": self.category.value,
            "message": self.message,
        }
        optional = {
            "device": self.device,
            "component": self.component,
            "user": self.user,
            "data": self.data,
            "alarm_priority": self.alarm_priority and self.alarm_priority.name,
            "alarm_state": self.alarm_state and self.alarm_state.value,
        }
        result.update({key: value for key, value in optional.items() if value})
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def to_human_readable(self) -> str:
        source = "".join(f"{part}:" for part in (self.device, self.component) if part)
        return (
            f"[SIM:{self.simulation_time:10.2f}s] [{self.severity.name:8s}] "
            f"{source} {self.message}"
        )


def _sim_now(clock: SimulationClock | None, record: logging.LogRecord) -> float:
    # No clock yet: seconds since logging was loaded
    if clock is None:
        return record.relativeCreated / 1000.0
    return clock.now()


class SimTimeFormatter(logging.Formatter):
    """Console format: ``[SIM:   12.34s] [    INFO] name: message``."""

    def __init__(self, clock: SimulationClock | None = None):
        super().__init__(
            fmt="[SIM:%(sim_time)8.2fs] [%(levelname)8s] %(name)s: %(message)s"
        )
        self.clock = clock

    def format(self, record: logging.LogRecord) -> str:
        record.sim_time = _sim_now(self.clock, record)
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """File format: one LogEntry JSON object per line."""

    def __init__(self, device: str = "", clock: SimulationClock | None = None):
        super().__init__()
        self.device = device
        self.clock = clock

    def format(self, record: logging.LogRecord) -> str:
        entry = LogEntry(
            simulation_time=_sim_now(self.clock, record),
            wall_time=record.created,
            severity=EventSeverity.from_level(record.levelno),
            category=EventCategory.SYSTEM,
            message=record.getMessage(),
            device=self.device,
            component=record.name,
        )
        if record.exc_info:
            entry.data["exception"] = self.formatException(record.exc_info)
        return entry.to_json()


class IncubatorLogger:
    """
    Structured logger for one component.

    The usual debug()/info()/... calls pass straight to the wrapped
    ``logging.Logger``. log_event(), log_audit() and log_alarm() build a
    LogEntry, emit its human-readable form and, for audit and alarm
    events, append it to the audit trail.

    Example:
        >>> logger = get_logger(__name__, device="tool_server")
        >>> await logger.log_audit("Fan turned OFF", action="control_fan")
    """

    def __init__(
        self,
        name: str,
        device: str = "",
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
        clock: SimulationClock | None = None,
        level: int = logging.DEBUG,
        max_audit_entries: int = 10000,
    ):
        """
        Args:
            name: Logger name, usually the module's ``__name__``
            device: Device the events belong to
            log_dir: Directory for the JSON file (no file output if None)
            enable_json: Write the JSON file when log_dir is set
            enable_console: Write to stderr
            clock: Source of simulation time for entries
            level: Minimum level handled
            max_audit_entries: Audit trail capacity; oldest entries drop first
        """
        self.name = name
        self.device = device
        self.log_dir = Path(log_dir) if log_dir else None
        self.clock = clock

        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.propagate = False
        self.logger.handlers.clear()

        if enable_console:
            console = logging.StreamHandler(sys.stderr)
            console.setFormatter(SimTimeFormatter(clock))
            self.logger.addHandler(console)

        if enable_json and self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            json_file = logging.handlers.RotatingFileHandler(
                self.log_dir / f"{device or 'system'}.json.log",
                maxBytes=JSON_LOG_MAX_BYTES,
                backupCount=JSON_LOG_BACKUPS,
            )
            json_file.setFormatter(JSONFormatter(device=device, clock=clock))
            self.logger.addHandler(json_file)

        self.audit_trail: deque[LogEntry] = deque(maxlen=max_audit_entries)
        self._trail_lock = asyncio.Lock()

    def reconfigure(self, level: int, clock: SimulationClock | None) -> None:
        """Apply a new level and clock to this logger and its formatters."""
        self.logger.setLevel(level)
        self.clock = clock
        for handler in self.logger.handlers:
            if isinstance(handler.formatter, (SimTimeFormatter, JSONFormatter)):
                handler.formatter.clock = clock

    def debug(self, message: str, **kwargs) -> None:
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.logger.error(message, **kwargs)

    def critical(self, message: str, **kwargs) -> None:
        self.logger.critical(message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        self.logger.exception(message, **kwargs)

    async def log_event(
        self,
        severity: EventSeverity,
        category: EventCategory,
        message: str,
        **kwargs,
    ) -> LogEntry:
        """
        Emit a structured event.

        Keyword arguments fill the optional LogEntry fields (user, data,
        component, ...); ``device`` defaults to this logger's device.
        """
        kwargs.setdefault("device", self.device)
        entry = LogEntry(
            simulation_time=self.clock.now() if self.clock else 0.0,
            wall_time=time.time(),
            severity=severity,
            category=category,
            message=message,
            **kwargs,
        )
        self.logger.log(severity.level, entry.to_human_readable())

        if category in _TRAIL_CATEGORIES:
            async with self._trail_lock:
                self.audit_trail.append(entry)

        return entry

    async def log_audit(
        self, message: str, user: str = "", action: str = "", result: str = "", **kwargs
    ) -> LogEntry:
        """Record a state-changing action; action and result go into ``data``."""
        data = {**kwargs.pop("data", {}), "action": action, "result": result}
        return await self.log_event(
            EventSeverity.NOTICE,
            EventCategory.AUDIT,
            message,
            user=user,
            data=data,
            **kwargs,
        )

    async def log_alarm(
        self,
        message: str,
        priority: AlarmPriority,
        state: AlarmState = AlarmState.ACTIVE,
        **kwargs,
    ) -> LogEntry:
        """Record an alarm transition; severity follows the priority."""
        return await self.log_event(
            _ALARM_SEVERITY.get(priority, EventSeverity.WARNING),
            EventCategory.ALARM,
            message,
            alarm_priority=priority,
            alarm_state=state,
            **kwargs,
        )

    async def get_audit_trail(
        self, limit: int = 100, category: EventCategory | None = None
    ) -> list[LogEntry]:
        """The last ``limit`` entries (oldest first), optionally one category only."""
        async with self._trail_lock:
            entries = [e for e in self.audit_trail if category in (None, e.category)]
        return entries[-limit:]

    async def clear_audit_trail(self) -> int:
        """Empty the trail and return how many entries were dropped."""
        async with self._trail_lock:
            count = len(self.audit_trail)
            self.audit_trail.clear()
        return count


_loggers: dict[str, IncubatorLogger] = {}
_loggers_lock = threading.Lock()
_default_log_dir: Path | None = None
_default_clock: SimulationClock | None = None
_default_level: int = logging.INFO


def configure_logging(
    log_dir: Path | str | None = None,
    clock: SimulationClock | None = None,
    level: int | str = logging.INFO,
) -> None:
    """
    Set process-wide logging defaults.

    Loggers created by get_logger() afterwards pick up the JSON directory,
    clock and level; loggers that already exist are re-levelled and moved
    to the new clock. The root logger is pointed at stderr with simulation
    time too, so plain ``logging.getLogger(__name__)`` modules match.

    Args:
        log_dir: Directory for JSON log files (None disables them)
        clock: Clock used to stamp entries
        level: Level name ("DEBUG") or number; unknown names mean INFO
    """
    global _default_log_dir, _default_clock, _default_level

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    _default_log_dir = Path(log_dir) if log_dir else None
    if _default_log_dir:
        _default_log_dir.mkdir(parents=True, exist_ok=True)
    _default_clock = clock
    _default_level = level

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(SimTimeFormatter(clock))
    root.addHandler(console)

    with _loggers_lock:
        for existing in _loggers.values():
            existing.reconfigure(level, clock)


def get_logger(name: str, device: str = "", **kwargs) -> IncubatorLogger:
    """
    Return the IncubatorLogger for ``name``/``device``, creating it once.

    Extra keyword arguments only apply on creation and override the
    configure_logging() defaults.
    """
    key = f"{name}:{device}"

    with _loggers_lock:
        if key not in _loggers:
            if _default_log_dir:
                kwargs.setdefault("log_dir", _default_log_dir)
            if _default_clock:
                kwargs.setdefault("clock", _default_clock)
            kwargs.setdefault("level", _default_level)
            _loggers[key] = IncubatorLogger(name, device, **kwargs)
        return _loggers[key]
