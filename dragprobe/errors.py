class DragProbeError(Exception):
    """Base error for dragprobe."""


class SessionNotFoundError(DragProbeError, ValueError):
    def __init__(self, session_id: str):
        super().__init__(f"Browser session not found or closed: {session_id}")
        self.session_id = session_id


class MoveTargetOutOfBoundsError(DragProbeError):
    """Raised when a pointer move would leave the document."""

    def __init__(self, x: float, y: float, width: int, height: int):
        super().__init__(
            f"Move target ({x}, {y}) is out of bounds of the document ({width} x {height})"
        )
        self.x = x
        self.y = y
        self.width = width
        self.height = height


class WaitTimeoutError(DragProbeError):
    def __init__(self, message: str, last_value=None):
        super().__init__(message)
        self.last_value = last_value
