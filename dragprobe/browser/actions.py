"""
Action sequences over Playwright's mouse.

``Actions`` batches pointer steps and runs them in order on ``perform()``,
so a drag gesture reads the same way it does with a WebDriver client:

    await Actions(page).drag_and_drop_by(element, 20, 20).perform()

Pointer positions are tracked in top-document page coordinates so the
window can be scrolled mid-gesture without changing where the drop lands.
"""
import asyncio
from typing import Awaitable, Callable, List, Optional, Tuple

from ..errors import DragProbeError, MoveTargetOutOfBoundsError
from ..logging_config import get_logger

logger = get_logger("dragprobe.browser.actions")

GEOMETRY_SCRIPT = """() => {
    const root = document.documentElement;
    const body = document.body;
    return {
        scrollX: window.scrollX,
        scrollY: window.scrollY,
        innerWidth: window.innerWidth,
        innerHeight: window.innerHeight,
        scrollWidth: Math.max(root.scrollWidth, body ? body.scrollWidth : 0),
        scrollHeight: Math.max(root.scrollHeight, body ? body.scrollHeight : 0),
    };
}"""

SCROLL_SCRIPT = "([x, y]) => window.scrollTo(x, y)"


class Actions:
    def __init__(self, page, steps: int = 5):
        self._page = page
        self._steps = max(1, steps)
        self._queue: List[Tuple[str, Callable[[], Awaitable[None]]]] = []
        # Page coordinates of the pointer; WebDriver pointers start at the origin
        self._pointer: Tuple[float, float] = (0.0, 0.0)
        self.button_down = False

    def __len__(self) -> int:
        return len(self._queue)

    # ==================== Builder ====================

    def click_and_hold(self, element=None) -> "Actions":
        if element is not None:
            self.move_to_element(element)
        self._queue.append(("down", self._press))
        return self

    def move_to_element(self, element) -> "Actions":
        self._queue.append(("move_to_element", lambda: self._move_to_element(element)))
        return self

    def move_by_offset(self, x_offset: int, y_offset: int) -> "Actions":
        self._queue.append(
            (f"move_by_offset({x_offset}, {y_offset})", lambda: self._move_by_offset(x_offset, y_offset))
        )
        return self

    def release(self, element=None) -> "Actions":
        if element is not None:
            self.move_to_element(element)
        self._queue.append(("up", self._release))
        return self

    def pause(self, seconds: float) -> "Actions":
        self._queue.append((f"pause({seconds})", lambda: asyncio.sleep(seconds)))
        return self

    def drag_and_drop(self, source, target) -> "Actions":
        return self.click_and_hold(source).move_to_element(target).release()

    def drag_and_drop_by(self, source, x_offset: int, y_offset: int) -> "Actions":
        return self.click_and_hold(source).move_by_offset(x_offset, y_offset).release()

    async def perform(self):
        """Run queued steps in order. The queue is emptied even on failure."""
        queue, self._queue = self._queue, []
        for name, step in queue:
            logger.debug_with("Performing step", step=name)
            await step()

    # ==================== Steps ====================

    async def _press(self):
        await self._page.mouse.down()
        self.button_down = True

    async def _release(self):
        await self._page.mouse.up()
        self.button_down = False

    async def _geometry(self) -> dict:
        return await self._page.evaluate(GEOMETRY_SCRIPT)

    async def _move_to_element(self, element):
        await element.scroll_into_view_if_needed()
        box = await element.bounding_box()
        if box is None:
            raise DragProbeError(f"Element is not visible: {element}")

        x = box["x"] + box["width"] / 2
        y = box["y"] + box["height"] / 2
        await self._page.mouse.move(x, y, steps=self._steps)

        geometry = await self._geometry()
        self._pointer = (x + geometry["scrollX"], y + geometry["scrollY"])

    async def _move_by_offset(self, x_offset: int, y_offset: int):
        geometry = await self._geometry()
        target_x = self._pointer[0] + x_offset
        target_y = self._pointer[1] + y_offset

        width, height = geometry["scrollWidth"], geometry["scrollHeight"]
        if not (0 <= target_x < width and 0 <= target_y < height):
            raise MoveTargetOutOfBoundsError(target_x, target_y, width, height)

        geometry = await self._scroll_into_viewport(target_x, target_y, geometry)
        await self._page.mouse.move(
            target_x - geometry["scrollX"],
            target_y - geometry["scrollY"],
            steps=self._steps,
        )
        self._pointer = (target_x, target_y)

    async def _scroll_into_viewport(self, x: float, y: float, geometry: dict) -> dict:
        view_x = x - geometry["scrollX"]
        view_y = y - geometry["scrollY"]
        if 0 <= view_x < geometry["innerWidth"] and 0 <= view_y < geometry["innerHeight"]:
            return geometry

        scroll_to = [
            max(0, int(x - geometry["innerWidth"] / 2)),
            max(0, int(y - geometry["innerHeight"] / 2)),
        ]
        await self._page.evaluate(SCROLL_SCRIPT, scroll_to)
        logger.debug(f"Scrolled window to {scroll_to} for pointer target ({x}, {y})")
        return await self._geometry()
