"""
Scripted waits.

Plain sleep-and-retry polling; conditions are async callables that return a
truthy value once satisfied.
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from ..errors import WaitTimeoutError
from ..logging_config import get_logger
from .models import Point

logger = get_logger("dragprobe.browser.waits")

DEFAULT_TIMEOUT = 10.0
DEFAULT_INTERVAL = 0.5

Condition = Callable[[], Awaitable[Any]]


async def wait_until(
    condition: Condition,
    timeout: float = DEFAULT_TIMEOUT,
    interval: float = DEFAULT_INTERVAL,
    message: str = "",
) -> Any:
    """Poll ``condition`` until it returns something truthy.

    Exceptions raised by the condition count as "not yet". The last value
    (or exception) seen is attached to the ``WaitTimeoutError``.
    """
    deadline = time.monotonic() + timeout
    last_value: Any = None

    while True:
        try:
            last_value = await condition()
            if last_value:
                return last_value
        except Exception as e:
            last_value = e

        if time.monotonic() >= deadline:
            break
        await asyncio.sleep(interval)

    description = getattr(condition, "description", "condition")
    raise WaitTimeoutError(
        f"Timed out after {timeout}s waiting for {description}"
        + (f": {message}" if message else "")
        + f" (last value: {last_value!r})",
        last_value=last_value,
    )


def element_location_to_be(manager, locator, expected: Point) -> Condition:
    async def condition():
        return await manager.location(locator) == expected

    condition.description = f"element location to be {expected}"
    return condition


def presence_of_element_located(manager, session_id: str, selector: str) -> Condition:
    async def condition():
        locator = manager.find(session_id, selector)
        if await locator.count() > 0:
            return locator
        return None

    condition.description = f"presence of element located by {selector!r}"
    return condition


def text_to_be(locator, expected: str) -> Condition:
    async def condition():
        return (await locator.inner_text()) == expected

    condition.description = f"text to be {expected!r}"
    return condition


async def poll_text(
    locator,
    expected: str,
    timeout: float = 15.0,
    interval: float = 0.2,
) -> Optional[str]:
    """Re-read ``locator``'s text until it equals ``expected`` or time runs out.

    Returns the last text seen; the caller asserts on it.
    """
    deadline = time.monotonic() + timeout
    text = await locator.inner_text()

    while text != expected and time.monotonic() < deadline:
        await asyncio.sleep(interval)
        text = await locator.inner_text()

    if text != expected:
        logger.warning_with("Text never matched", text=text, expected=expected, timeout=timeout)
    return text
