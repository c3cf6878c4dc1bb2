"""
Browser control API endpoints.
"""
from typing import Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..errors import MoveTargetOutOfBoundsError, SessionNotFoundError
from .manager import browser_manager
from .models import BrowserSessionConfig, BrowserType

router = APIRouter(prefix="/api/browser", tags=["browser"])


# ==================== Request Models ====================

class BrowserSessionCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    headless: bool = True
    browser_type: str = Field("chromium", max_length=20)
    viewport_width: int = Field(1280, ge=200, le=3840)
    viewport_height: int = Field(720, ge=200, le=2160)
    timeout_ms: int = Field(30000, ge=1000, le=120000)
    move_steps: int = Field(5, ge=1, le=100)


class NavigateRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2000)
    wait_until: str = Field("load", max_length=20)


class DragToElementRequest(BaseModel):
    source: str = Field(..., min_length=1, max_length=500)
    target: str = Field(..., min_length=1, max_length=500)


class DragByOffsetRequest(BaseModel):
    source: str = Field(..., min_length=1, max_length=500)
    x_offset: int
    y_offset: int


class LocationRequest(BaseModel):
    selector: str = Field(..., min_length=1, max_length=500)


# ==================== Session Endpoints ====================

@router.get("/sessions")
async def list_browser_sessions():
    """List all browser sessions."""
    sessions = browser_manager.get_all_sessions()
    return {"sessions": [s.to_dict() for s in sessions]}


@router.post("/sessions")
async def create_browser_session(request: BrowserSessionCreate):
    """Create a new browser session."""
    try:
        browser_type = BrowserType(request.browser_type)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid browser type: {request.browser_type}")

    config = BrowserSessionConfig(
        headless=request.headless,
        browser_type=browser_type,
        viewport_width=request.viewport_width,
        viewport_height=request.viewport_height,
        timeout_ms=request.timeout_ms,
        move_steps=request.move_steps,
    )

    try:
        session = await browser_manager.create_session(name=request.name, config=config)
        return {"success": True, "session": session.to_dict()}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/sessions/{session_id}")
async def get_browser_session(session_id: str):
    """Get browser session details."""
    session = browser_manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Browser session not found")
    return {"session": session.to_dict()}


@router.delete("/sessions/{session_id}")
async def close_browser_session(session_id: str):
    """Close and clean up a browser session."""
    if not await browser_manager.close_session(session_id):
        raise HTTPException(status_code=404, detail="Browser session not found")
    return {"success": True}


# ==================== Action Endpoints ====================

@router.post("/sessions/{session_id}/navigate")
async def navigate(session_id: str, request: NavigateRequest):
    """Navigate to a URL."""
    try:
        action = await browser_manager.navigate(session_id, request.url, request.wait_until)
        return {"success": action.error is None, "action": action.to_dict()}
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/sessions/{session_id}/drag")
async def drag_to_element(session_id: str, request: DragToElementRequest):
    """Drag one element onto another."""
    try:
        action = await browser_manager.drag_and_drop(session_id, request.source, request.target)
        return {"success": action.error is None, "action": action.to_dict()}
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/sessions/{session_id}/drag-by")
async def drag_by_offset(session_id: str, request: DragByOffsetRequest):
    """Drag an element by a pixel offset."""
    try:
        action = await browser_manager.drag_and_drop_by(
            session_id, request.source, request.x_offset, request.y_offset
        )
        return {"success": action.error is None, "action": action.to_dict()}
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MoveTargetOutOfBoundsError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/sessions/{session_id}/location")
async def element_location(session_id: str, request: LocationRequest):
    """Get an element's location in the current frame."""
    try:
        locator = browser_manager.find(session_id, request.selector)
        point = await browser_manager.location(locator)
        return {"location": point.to_dict()}
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ==================== Log Endpoints ====================

@router.get("/sessions/{session_id}/console")
async def get_console_logs(session_id: str, level: Optional[str] = None, limit: int = 100):
    """Get console logs for a browser session."""
    logs = browser_manager.get_console_logs(session_id, level=level, limit=limit)
    return {"logs": logs, "count": len(logs)}


@router.get("/sessions/{session_id}/history")
async def get_action_history(session_id: str, limit: int = 50):
    """Get action history for a browser session."""
    history = browser_manager.get_action_history(session_id, limit=limit)
    return {"actions": history, "count": len(history)}


# ==================== Status Endpoint ====================

@router.get("/status")
async def browser_status():
    """Get overall browser automation status."""
    sessions = browser_manager.get_all_sessions()
    active = [s for s in sessions if s.status.value not in ("closed", "error")]
    return {
        "initialized": browser_manager._initialized,
        "total_sessions": len(sessions),
        "active_sessions": len(active),
        "sessions": [s.to_dict() for s in sessions],
    }
