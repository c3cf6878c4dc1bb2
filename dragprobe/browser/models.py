"""
Browser session and geometry data models.
"""
import math
import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any


class BrowserSessionStatus(Enum):
    STARTING = "starting"
    IDLE = "idle"
    NAVIGATING = "navigating"
    ERROR = "error"
    CLOSED = "closed"


class BrowserType(Enum):
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class ActionType(Enum):
    NAVIGATE = "navigate"
    EVALUATE = "evaluate"
    SWITCH_FRAME = "switch_frame"
    RESIZE = "resize"
    DRAG_AND_DROP = "drag_and_drop"
    DRAG_AND_DROP_BY = "drag_and_drop_by"


@dataclass(frozen=True)
class Point:
    """An integer (x, y) position in document coordinates."""
    x: int
    y: int

    def move_by(self, dx: int, dy: int) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Point":
        # Halves round up
        return cls(math.floor(data["x"] + 0.5), math.floor(data["y"] + 0.5))

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass
class BrowserSessionConfig:
    """Configuration for a browser session."""
    headless: bool = True
    browser_type: BrowserType = BrowserType.CHROMIUM
    viewport_width: int = 1280
    viewport_height: int = 720
    timeout_ms: int = 30000
    move_steps: int = 5
    record_console: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headless": self.headless,
            "browser_type": self.browser_type.value,
            "viewport_width": self.viewport_width,
            "viewport_height": self.viewport_height,
            "timeout_ms": self.timeout_ms,
            "move_steps": self.move_steps,
            "record_console": self.record_console,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrowserSessionConfig":
        data = data.copy()
        if "browser_type" in data and isinstance(data["browser_type"], str):
            data["browser_type"] = BrowserType(data["browser_type"])
        return cls(**data)

    @classmethod
    def from_env(cls) -> "BrowserSessionConfig":
        return cls(
            headless=os.environ.get("DRAGPROBE_HEADLESS", "1").lower() not in ("0", "false", "no"),
            browser_type=BrowserType(os.environ.get("DRAGPROBE_BROWSER", "chromium").lower()),
            timeout_ms=int(os.environ.get("DRAGPROBE_TIMEOUT_MS", "30000")),
            move_steps=int(os.environ.get("DRAGPROBE_MOVE_STEPS", "5")),
        )


@dataclass
class ConsoleLogEntry:
    """A browser console log entry."""
    level: str  # log, warning, error, info, debug
    text: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "text": self.text,
            "timestamp": self.timestamp,
        }


@dataclass
class BrowserAction:
    """An executed browser action."""
    action_type: ActionType
    params: Dict[str, Any] = field(default_factory=dict)
    result: Optional[Any] = None
    error: Optional[str] = None
    duration_ms: float = 0.0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        return {
            "action_type": self.action_type.value,
            "params": self.params,
            "result": self.result,
            "error": self.error,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


@dataclass
class BrowserSession:
    """A browser session with state tracking."""
    id: str
    name: str
    config: BrowserSessionConfig
    status: BrowserSessionStatus = BrowserSessionStatus.STARTING
    current_url: str = ""
    # Frame path from the top document; empty means top
    frame_path: List[str] = field(default_factory=list)
    # Set when the window was resized or otherwise left unusable for later scenarios
    dirty: bool = False
    console_logs: List[ConsoleLogEntry] = field(default_factory=list)
    action_history: List[BrowserAction] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    _max_console_logs: int = 500
    _max_action_history: int = 200

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "config": self.config.to_dict(),
            "status": self.status.value,
            "current_url": self.current_url,
            "frame_path": list(self.frame_path),
            "dirty": self.dirty,
            "console_log_count": len(self.console_logs),
            "action_count": len(self.action_history),
            "created_at": self.created_at,
        }

    def add_console_log(self, entry: ConsoleLogEntry):
        self.console_logs.append(entry)
        if len(self.console_logs) > self._max_console_logs:
            self.console_logs = self.console_logs[-self._max_console_logs:]

    def add_action(self, action: BrowserAction):
        self.action_history.append(action)
        if len(self.action_history) > self._max_action_history:
            self.action_history = self.action_history[-self._max_action_history:]
