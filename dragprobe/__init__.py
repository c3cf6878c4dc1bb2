"""
dragprobe - cross-browser drag-and-drop conformance suite.

Drives Chromium, Firefox and WebKit through Playwright against a set of
local fixture pages and checks where dragged elements end up.
"""
__version__ = "0.3.0"
