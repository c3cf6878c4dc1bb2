import json
import logging
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from dragprobe import __version__
from dragprobe.cli import main
from dragprobe.errors import DragProbeError
from dragprobe.runner import ScenarioResult, ScenarioStatus, SuiteResult


@pytest.fixture
def runner():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield CliRunner()
    # setup_logging replaces root handlers with ones bound to the runner's streams
    root.handlers[:] = handlers
    root.setLevel(level)


def suite_with(*statuses):
    return SuiteResult(
        browser_type="chromium",
        results=[ScenarioResult(f"s{i}", status) for i, status in enumerate(statuses)],
    )


class TestInfoCommands:
    def test_version(self, runner):
        result = runner.invoke(main, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_list(self, runner):
        result = runner.invoke(main, ["list"])
        assert result.exit_code == 0
        assert "drag_too_far" in result.output


class TestRun:
    def test_json_output(self, runner):
        async def fake_run(config, names):
            assert names == ["drag_too_far"]
            assert config.headless is False
            return suite_with(ScenarioStatus.PASSED)

        with patch("dragprobe.cli._run", fake_run):
            result = runner.invoke(main, ["run", "--headed", "--only", "drag_too_far", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["passed"] is True
        assert data["counts"]["passed"] == 1

    def test_failure_exit_code(self, runner):
        async def fake_run(config, names):
            assert config.browser_type.value == "webkit"
            return suite_with(ScenarioStatus.PASSED, ScenarioStatus.FAILED)

        with patch("dragprobe.cli._run", fake_run):
            result = runner.invoke(main, ["run", "--browser", "webkit"])

        assert result.exit_code == 1
        assert "Failures" in result.output

    def test_unknown_scenario(self, runner):
        async def fake_run(config, names):
            raise DragProbeError("Unknown scenario(s): nope")

        with patch("dragprobe.cli._run", fake_run):
            result = runner.invoke(main, ["run", "--only", "nope"])

        assert result.exit_code == 2
        assert "Unknown scenario" in result.output

    def test_browser_launch_failure(self, runner):
        async def fake_run(config, names):
            raise RuntimeError("Executable doesn't exist")

        with patch("dragprobe.cli._run", fake_run):
            result = runner.invoke(main, ["run"])

        assert result.exit_code == 2
        assert "playwright install" in result.output

    def test_invalid_browser_choice(self, runner):
        result = runner.invoke(main, ["run", "--browser", "lynx"])
        assert result.exit_code == 2
