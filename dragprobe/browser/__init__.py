"""
Browser layer for dragprobe.

Provides Playwright-based browser sessions with:
- Page navigation, script execution and frame switching
- Element lookup and location queries in the current frame
- Action sequences for drag gestures
- Polling waits
"""
