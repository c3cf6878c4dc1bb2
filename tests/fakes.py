from unittest.mock import AsyncMock, MagicMock

from dragprobe.browser.actions import SCROLL_SCRIPT


class FakePage:
    """Stands in for a Playwright page: an async mouse plus window geometry."""

    def __init__(self, inner_width=1280, inner_height=720, scroll_width=2000, scroll_height=3000,
                 scroll_x=0, scroll_y=0):
        self.mouse = AsyncMock()
        self.geometry = {
            "scrollX": scroll_x,
            "scrollY": scroll_y,
            "innerWidth": inner_width,
            "innerHeight": inner_height,
            "scrollWidth": scroll_width,
            "scrollHeight": scroll_height,
        }
        self.scrolls = []

    async def evaluate(self, script, arg=None):
        if script == SCROLL_SCRIPT:
            self.geometry["scrollX"], self.geometry["scrollY"] = arg
            self.scrolls.append(tuple(arg))
            return None
        return dict(self.geometry)


def make_element(x, y, width=50, height=50):
    element = MagicMock()
    element.scroll_into_view_if_needed = AsyncMock()
    element.bounding_box = AsyncMock(return_value={"x": x, "y": y, "width": width, "height": height})
    return element
