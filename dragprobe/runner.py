"""
Scenario runner.

Runs registered scenarios against one browser engine, reusing a session
between scenarios unless a scenario asks for a fresh one or leaves its
session unusable.
"""
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .browser.manager import BrowserManager, browser_manager
from .browser.models import BrowserSessionConfig
from .errors import WaitTimeoutError
from .logging_config import get_logger, scenario_logging
from .scenarios import Scenario, ScenarioContext, get_scenarios
from .server import AppServer

logger = get_logger("dragprobe.runner")


class ScenarioStatus(Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class ScenarioResult:
    name: str
    status: ScenarioStatus
    message: str = ""
    duration_ms: float = 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "duration_ms": round(self.duration_ms, 1),
        }


@dataclass
class SuiteResult:
    """Outcome of one run over a set of scenarios."""
    browser_type: str
    results: List[ScenarioResult] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def count(self, status: ScenarioStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def passed(self) -> bool:
        return self.count(ScenarioStatus.FAILED) == 0 and self.count(ScenarioStatus.ERROR) == 0

    def to_dict(self) -> dict:
        return {
            "browser_type": self.browser_type,
            "passed": self.passed,
            "counts": {status.value: self.count(status) for status in ScenarioStatus},
            "results": [r.to_dict() for r in self.results],
            "started_at": self.started_at,
        }


async def run_scenario(scenario: Scenario, ctx: ScenarioContext) -> ScenarioResult:
    """Run one scenario and classify the outcome. Never raises."""
    start = time.monotonic()
    with scenario_logging(scenario.name):
        try:
            await scenario.run(ctx)
            status, message = ScenarioStatus.PASSED, ""
        except (AssertionError, WaitTimeoutError) as e:
            status, message = ScenarioStatus.FAILED, str(e) or type(e).__name__
        except Exception as e:
            logger.error_with("Scenario errored", exc_info=True, scenario=scenario.name, error=str(e))
            status, message = ScenarioStatus.ERROR, f"{type(e).__name__}: {e}"

    result = ScenarioResult(
        name=scenario.name,
        status=status,
        message=message,
        duration_ms=(time.monotonic() - start) * 1000,
    )
    logger.info_with(
        f"{scenario.name}: {status.value}",
        scenario=scenario.name,
        status=status.value,
        duration_ms=round(result.duration_ms, 1),
    )
    return result


async def run_scenarios(
    config: Optional[BrowserSessionConfig] = None,
    names: Optional[List[str]] = None,
    app_server: Optional[AppServer] = None,
    manager: Optional[BrowserManager] = None,
    platform: Optional[str] = None,
) -> SuiteResult:
    """
    Run scenarios against the engine in ``config``.

    Starts (and stops) a fixture server when none is passed in. Browser
    launch failures propagate; scenario failures are recorded.
    """
    config = config or BrowserSessionConfig()
    manager = manager or browser_manager
    scenarios = get_scenarios(names)
    suite = SuiteResult(browser_type=config.browser_type.value)

    owns_server = app_server is None
    if owns_server:
        app_server = AppServer().start()

    session = None
    try:
        for scenario in scenarios:
            reason = scenario.skip_reason(config.browser_type, platform)
            if reason:
                suite.results.append(ScenarioResult(scenario.name, ScenarioStatus.SKIPPED, reason))
                logger.info(f"{scenario.name}: skipped ({reason})")
                continue

            if session is not None and (scenario.needs_fresh_session or session.dirty):
                await manager.close_session(session.id)
                session = None
            if session is None:
                session = await manager.create_session(name=f"dragprobe {config.browser_type.value}", config=config)

            ctx = ScenarioContext(manager=manager, session_id=session.id, app_server=app_server)
            result = await run_scenario(scenario, ctx)
            suite.results.append(result)
            if result.status == ScenarioStatus.ERROR:
                # A crashed scenario may leave the mouse button pressed
                session.dirty = True

            if scenario.switch_to_top_after:
                manager.switch_to_default_content(session.id)
            if scenario.discard_session_after or session.dirty:
                await manager.close_session(session.id)
                session = None
    finally:
        if session is not None:
            await manager.close_session(session.id)
        if owns_server:
            app_server.stop()

    logger.info(
        f"Suite on {suite.browser_type}: {'PASSED' if suite.passed else 'FAILED'} "
        f"({suite.count(ScenarioStatus.PASSED)} passed, {suite.count(ScenarioStatus.FAILED)} failed, "
        f"{suite.count(ScenarioStatus.ERROR)} errors, {suite.count(ScenarioStatus.SKIPPED)} skipped)"
    )
    return suite
