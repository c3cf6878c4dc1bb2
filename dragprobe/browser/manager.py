"""
BrowserManager - Manages Playwright browser sessions.

Provides a singleton manager for launching browsers and driving the page
the way a WebDriver client would: navigation, element lookup in the current
frame, frame switching, script execution and geometry queries.
"""
import asyncio
import time
import uuid
from typing import Optional, Dict, Callable, Any, List, Union

from ..errors import MoveTargetOutOfBoundsError, SessionNotFoundError
from ..logging_config import get_logger

from .actions import Actions
from .models import (
    BrowserSession,
    BrowserSessionConfig,
    BrowserSessionStatus,
    BrowserType,
    ActionType,
    BrowserAction,
    ConsoleLogEntry,
    Point,
)

logger = get_logger("dragprobe.browser")

# Top-left of the element's border box relative to its own frame document
LOCATION_SCRIPT = """el => {
    const rect = el.getBoundingClientRect();
    return {x: rect.left + window.scrollX, y: rect.top + window.scrollY};
}"""

FRAME_SELECTOR = "iframe, frame"


def by_id(element_id: str) -> str:
    # Attribute form so ids like "11am" stay valid
    return f'[id="{element_id}"]'


def by_tag(tag_name: str) -> str:
    return tag_name


class BrowserManager:
    """Manages multiple concurrent Playwright browser sessions."""

    def __init__(self):
        self.sessions: Dict[str, BrowserSession] = {}
        self._playwright = None
        self._browsers: Dict[str, Any] = {}
        self._contexts: Dict[str, Any] = {}
        self._pages: Dict[str, Any] = {}
        self._status_callbacks: List[Callable] = []
        self._initialized = False

    async def _ensure_playwright(self):
        """Lazy-init Playwright on first use."""
        if not self._initialized:
            from playwright.async_api import async_playwright
            self._playwright = await async_playwright().start()
            self._initialized = True
            logger.info("Playwright initialized")

    def add_status_callback(self, callback: Callable):
        self._status_callbacks.append(callback)

    async def _notify_status(self, session_id: str, status: BrowserSessionStatus):
        for callback in self._status_callbacks:
            try:
                if asyncio.iscoroutinefunction(callback):
                    await callback(session_id, status)
                else:
                    callback(session_id, status)
            except Exception as e:
                logger.error_with("Browser status callback failed", session_id=session_id, error=str(e))

    # ==================== Session Lifecycle ====================

    async def create_session(
        self,
        name: Optional[str] = None,
        config: Optional[BrowserSessionConfig] = None,
    ) -> BrowserSession:
        """Create and launch a new browser session."""
        await self._ensure_playwright()

        session_id = uuid.uuid4().hex[:8]
        if name is None:
            name = f"Browser {session_id}"
        if config is None:
            config = BrowserSessionConfig()

        session = BrowserSession(id=session_id, name=name, config=config)
        self.sessions[session_id] = session

        try:
            launcher = {
                BrowserType.CHROMIUM: self._playwright.chromium,
                BrowserType.FIREFOX: self._playwright.firefox,
                BrowserType.WEBKIT: self._playwright.webkit,
            }[config.browser_type]

            browser = await launcher.launch(headless=config.headless)
            self._browsers[session_id] = browser

            context = await browser.new_context(
                viewport={
                    "width": config.viewport_width,
                    "height": config.viewport_height,
                },
            )
            self._contexts[session_id] = context

            page = await context.new_page()
            page.set_default_timeout(config.timeout_ms)
            self._pages[session_id] = page

            if config.record_console:
                page.on("console", lambda msg: self._on_console(session_id, msg))

            session.status = BrowserSessionStatus.IDLE
            await self._notify_status(session_id, session.status)
            logger.info(f"Created browser session {session_id}: {name} ({config.browser_type.value})")
            return session

        except Exception as e:
            session.status = BrowserSessionStatus.ERROR
            await self._notify_status(session_id, session.status)
            logger.error_with(
                "Failed to create browser session",
                session_id=session_id,
                browser=config.browser_type.value,
                error=str(e),
            )
            raise

    async def close_session(self, session_id: str) -> bool:
        """Close a browser session and clean up resources."""
        session = self.sessions.get(session_id)
        if not session:
            return False

        try:
            if session_id in self._contexts:
                await self._contexts[session_id].close()
            if session_id in self._browsers:
                await self._browsers[session_id].close()
        except Exception as e:
            logger.error_with("Error closing browser session", session_id=session_id, error=str(e))

        self._pages.pop(session_id, None)
        self._contexts.pop(session_id, None)
        self._browsers.pop(session_id, None)

        session.status = BrowserSessionStatus.CLOSED
        await self._notify_status(session_id, session.status)
        logger.info(f"Closed browser session {session_id}")
        return True

    async def close_all(self):
        """Close all browser sessions and stop Playwright."""
        for session_id in list(self.sessions.keys()):
            await self.close_session(session_id)
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
            self._initialized = False
            logger.info("Playwright stopped")

    def get_session(self, session_id: str) -> Optional[BrowserSession]:
        return self.sessions.get(session_id)

    def get_all_sessions(self) -> List[BrowserSession]:
        return list(self.sessions.values())

    def get_page(self, session_id: str):
        """Get the Playwright page for a session."""
        page = self._pages.get(session_id)
        if not page:
            raise SessionNotFoundError(session_id)
        return page

    # ==================== Navigation & Scripts ====================

    async def navigate(self, session_id: str, url: str, wait_until: str = "load") -> BrowserAction:
        """Navigate to a URL. Element lookups go back to the top document."""
        page = self.get_page(session_id)
        session = self.sessions[session_id]
        action = BrowserAction(action_type=ActionType.NAVIGATE, params={"url": url, "wait_until": wait_until})
        start = time.monotonic()

        try:
            session.status = BrowserSessionStatus.NAVIGATING
            await self._notify_status(session_id, session.status)

            response = await page.goto(url, wait_until=wait_until)
            action.result = {
                "status": response.status if response else None,
                "url": page.url,
            }
            session.current_url = page.url
            session.frame_path = []
            session.status = BrowserSessionStatus.IDLE
        except Exception as e:
            action.error = str(e)
            session.status = BrowserSessionStatus.ERROR

        action.duration_ms = (time.monotonic() - start) * 1000
        session.add_action(action)
        await self._notify_status(session_id, session.status)
        return action

    async def evaluate(self, session_id: str, expression: str, arg: Any = None) -> BrowserAction:
        """Evaluate JavaScript in the top document."""
        page = self.get_page(session_id)
        action = BrowserAction(action_type=ActionType.EVALUATE, params={"expression": expression})
        start = time.monotonic()

        try:
            action.result = await page.evaluate(expression, arg)
        except Exception as e:
            action.error = str(e)

        action.duration_ms = (time.monotonic() - start) * 1000
        self.sessions[session_id].add_action(action)
        return action

    async def resize_viewport(self, session_id: str, width: int, height: int) -> BrowserAction:
        """Shrink or grow the window. The session is not reusable afterwards."""
        page = self.get_page(session_id)
        session = self.sessions[session_id]
        action = BrowserAction(action_type=ActionType.RESIZE, params={"width": width, "height": height})

        await page.set_viewport_size({"width": width, "height": height})
        session.dirty = True

        session.add_action(action)
        return action

    # ==================== Frames & Elements ====================

    def _scope(self, session_id: str):
        scope = self.get_page(session_id)
        for selector in self.sessions[session_id].frame_path:
            scope = scope.frame_locator(selector)
        return scope

    def switch_to_frame(self, session_id: str, target: Union[int, str]) -> BrowserAction:
        """Switch lookups into a child frame, by index or by selector."""
        self.get_page(session_id)
        session = self.sessions[session_id]
        if isinstance(target, int):
            selector = f"{FRAME_SELECTOR} >> nth={target}"
        else:
            selector = target

        session.frame_path.append(selector)
        action = BrowserAction(
            action_type=ActionType.SWITCH_FRAME,
            params={"target": target},
            result={"frame_path": list(session.frame_path)},
        )
        session.add_action(action)
        logger.debug(f"Session {session_id} switched to frame {selector}")
        return action

    def switch_to_default_content(self, session_id: str):
        self.get_page(session_id)
        self.sessions[session_id].frame_path = []

    def find(self, session_id: str, selector: str):
        """Locate an element in the session's current frame."""
        return self._scope(session_id).locator(selector)

    async def location(self, locator) -> Point:
        return Point.from_dict(await locator.evaluate(LOCATION_SCRIPT))

    async def text(self, locator) -> str:
        return await locator.inner_text()

    # ==================== Gestures ====================

    def actions(self, session_id: str) -> Actions:
        page = self.get_page(session_id)
        return Actions(page, steps=self.sessions[session_id].config.move_steps)

    async def drag_and_drop(self, session_id: str, source: str, target: str) -> BrowserAction:
        """Drag the element matching ``source`` onto the one matching ``target``."""
        action = BrowserAction(
            action_type=ActionType.DRAG_AND_DROP,
            params={"source": source, "target": target},
        )
        source_el = self.find(session_id, source)
        target_el = self.find(session_id, target)
        await self._perform_drag(
            session_id, action, source_el,
            self.actions(session_id).drag_and_drop(source_el, target_el),
        )
        return action

    async def drag_and_drop_by(self, session_id: str, source: str, x_offset: int, y_offset: int) -> BrowserAction:
        """Drag the element matching ``source`` by a pixel offset."""
        action = BrowserAction(
            action_type=ActionType.DRAG_AND_DROP_BY,
            params={"source": source, "x_offset": x_offset, "y_offset": y_offset},
        )
        source_el = self.find(session_id, source)
        await self._perform_drag(
            session_id, action, source_el,
            self.actions(session_id).drag_and_drop_by(source_el, x_offset, y_offset),
        )
        return action

    async def _perform_drag(self, session_id: str, action: BrowserAction, source_el, chain: Actions):
        session = self.sessions[session_id]
        start = time.monotonic()

        try:
            await chain.perform()
            action.result = {"location": (await self.location(source_el)).to_dict()}
        except MoveTargetOutOfBoundsError as e:
            action.error = str(e)
            raise
        except Exception as e:
            action.error = str(e)
        finally:
            # An interrupted gesture leaves the button pressed
            if chain.button_down:
                logger.warning_with("Releasing mouse after failed drag", session_id=session_id, error=action.error)
                await chain.release().perform()
            action.duration_ms = (time.monotonic() - start) * 1000
            session.add_action(action)

    # ==================== Log Access ====================

    def get_console_logs(self, session_id: str, level: Optional[str] = None, limit: int = 100) -> List[dict]:
        session = self.sessions.get(session_id)
        if not session:
            return []
        logs = session.console_logs
        if level:
            logs = [entry for entry in logs if entry.level == level]
        return [entry.to_dict() for entry in logs[-limit:]]

    def get_action_history(self, session_id: str, limit: int = 50) -> List[dict]:
        session = self.sessions.get(session_id)
        if not session:
            return []
        return [a.to_dict() for a in session.action_history[-limit:]]

    def _on_console(self, session_id: str, msg):
        """Handle console message from page."""
        session = self.sessions.get(session_id)
        if session:
            session.add_console_log(ConsoleLogEntry(level=msg.type, text=msg.text))


# Global singleton instance
browser_manager = BrowserManager()
