import pytest

from dragprobe.browser.models import (
    ActionType,
    BrowserAction,
    BrowserSession,
    BrowserSessionConfig,
    BrowserType,
    ConsoleLogEntry,
    Point,
)


class TestPoint:
    def test_move_by_returns_new_point(self):
        p = Point(10, 20)
        moved = p.move_by(150, 200)
        assert moved == Point(160, 220)
        assert p == Point(10, 20)

    def test_from_dict_rounds(self):
        assert Point.from_dict({"x": 100.4, "y": 99.6}) == Point(100, 100)

    @pytest.mark.parametrize("value, expected", [(100.5, 101), (101.5, 102), (-0.5, 0), (299.5, 300)])
    def test_from_dict_rounds_halves_up(self, value, expected):
        assert Point.from_dict({"x": value, "y": value}) == Point(expected, expected)

    def test_immutable(self):
        with pytest.raises(AttributeError):
            Point(1, 2).x = 5

    def test_str(self):
        assert str(Point(3, -4)) == "(3, -4)"


class TestBrowserSessionConfig:
    def test_defaults(self):
        config = BrowserSessionConfig()
        assert config.headless is True
        assert config.browser_type == BrowserType.CHROMIUM
        assert config.move_steps == 5

    def test_from_dict(self):
        config = BrowserSessionConfig.from_dict({"browser_type": "webkit", "viewport_width": 800})
        assert config.browser_type == BrowserType.WEBKIT
        assert config.viewport_width == 800

    def test_to_dict_roundtrip(self):
        config = BrowserSessionConfig(browser_type=BrowserType.FIREFOX, move_steps=2)
        assert BrowserSessionConfig.from_dict(config.to_dict()) == config

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DRAGPROBE_BROWSER", "Firefox")
        monkeypatch.setenv("DRAGPROBE_HEADLESS", "false")
        monkeypatch.setenv("DRAGPROBE_MOVE_STEPS", "12")
        config = BrowserSessionConfig.from_env()
        assert config.browser_type == BrowserType.FIREFOX
        assert config.headless is False
        assert config.move_steps == 12

    def test_from_env_rejects_unknown_browser(self, monkeypatch):
        monkeypatch.setenv("DRAGPROBE_BROWSER", "netscape")
        with pytest.raises(ValueError):
            BrowserSessionConfig.from_env()


class TestBrowserSession:
    def test_action_history_is_bounded(self):
        session = BrowserSession(id="s1", name="test", config=BrowserSessionConfig(), _max_action_history=3)
        for i in range(5):
            session.add_action(BrowserAction(action_type=ActionType.NAVIGATE, params={"i": i}))
        assert [a.params["i"] for a in session.action_history] == [2, 3, 4]

    def test_console_log_is_bounded(self):
        session = BrowserSession(id="s1", name="test", config=BrowserSessionConfig(), _max_console_logs=2)
        for text in ("a", "b", "c"):
            session.add_console_log(ConsoleLogEntry(level="log", text=text))
        assert [e.text for e in session.console_logs] == ["b", "c"]

    def test_to_dict(self):
        session = BrowserSession(id="s1", name="test", config=BrowserSessionConfig())
        session.frame_path.append("iframe")
        d = session.to_dict()
        assert d["status"] == "starting"
        assert d["frame_path"] == ["iframe"]
        assert d["dirty"] is False
        assert d["config"]["browser_type"] == "chromium"

    def test_action_to_dict(self):
        action = BrowserAction(action_type=ActionType.DRAG_AND_DROP_BY, params={"x_offset": 20})
        d = action.to_dict()
        assert d["action_type"] == "drag_and_drop_by"
        assert d["error"] is None
