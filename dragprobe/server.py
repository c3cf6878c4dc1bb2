"""
Fixture page server.

Serves the HTML pages the drag-and-drop scenarios run against, plus the
browser control API. ``AppServer`` runs the app under uvicorn on a
background thread so scenarios and tests can resolve page URLs.
"""
import socket
import threading
import time
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from . import __version__
from .browser.api import router as browser_router
from .logging_config import get_logger

logger = get_logger("dragprobe.server")

WEB_DIR = Path(__file__).parent / "web"
PAGES_DIR = WEB_DIR / "pages"

# Logical page names used by scenarios
PAGES = {
    "drag_and_drop_page": "dragAndDropTest.html",
    "iframe_page": "iframes.html",
    "iframe_at_bottom": "iframeAtBottom.html",
    "drag_and_drop_inside_scrolled_div": "dragAndDropInsideScrolledDiv.html",
    "droppable_items": "droppableItems.html",
    "drag_drop_overflow": "dragDropOverflow.html",
}

app = FastAPI(title="dragprobe", version=__version__)
app.mount("/pages", StaticFiles(directory=PAGES_DIR, html=True), name="pages")
templates = Jinja2Templates(directory=WEB_DIR / "templates")

app.include_router(browser_router)


@app.get("/")
async def index(request: Request):
    """List the fixture pages."""
    files = sorted(p.name for p in PAGES_DIR.glob("*.html"))
    return templates.TemplateResponse(
        request,
        "index.html",
        {"files": files, "pages": PAGES, "version": __version__},
    )


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__, "pages": len(PAGES)}


def find_free_port(host: str = "127.0.0.1") -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return sock.getsockname()[1]


class AppServer:
    """Runs the fixture app under uvicorn on a daemon thread."""

    def __init__(self, host: str = "127.0.0.1", port: Optional[int] = None):
        self.host = host
        self.port = port or find_free_port(host)
        self._server = None
        self._thread: Optional[threading.Thread] = None

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def where_is(self, name: str) -> str:
        """URL of a fixture page, by logical name or by file name."""
        filename = PAGES.get(name, name)
        return f"{self.base_url}/pages/{filename}"

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, timeout: float = 10.0) -> "AppServer":
        import uvicorn

        if self.running:
            return self

        config = uvicorn.Config(app, host=self.host, port=self.port, log_level="warning")
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._server.run, name="dragprobe-app-server", daemon=True)
        self._thread.start()

        deadline = time.monotonic() + timeout
        while not self._server.started:
            if time.monotonic() > deadline or not self._thread.is_alive():
                raise RuntimeError(f"Fixture server failed to start on {self.base_url}")
            time.sleep(0.05)

        logger.info(f"Serving fixture pages at {self.base_url}")
        return self

    def stop(self):
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
        logger.info("Fixture server stopped")

    def __enter__(self) -> "AppServer":
        return self.start()

    def __exit__(self, *exc):
        self.stop()


def run_server(host: str = "127.0.0.1", port: int = 8420):
    """Run the fixture server in the foreground."""
    import uvicorn

    logger.info(f"Fixture pages at http://{host}:{port}/pages/")
    uvicorn.run(app, host=host, port=port)
