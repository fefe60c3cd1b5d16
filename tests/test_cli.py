import json

import pytest
from click.testing import CliRunner
from PIL import Image

from carriage_vision import cli as cli_module
from carriage_vision.analyzer import CongestionAnalyzer
from carriage_vision.config import Settings
from carriage_vision.exceptions import NoProvidersAvailableError

from conftest import FRAME_DATA_URL, FRAME_URL, StubProvider, make_result, registry_of


@pytest.fixture
def runner():
    return CliRunner()


def _install(monkeypatch, *providers):
    analyzer = CongestionAnalyzer.from_settings(
        Settings(primary_provider=providers[0].name.lower()), registry_of(*providers)
    )
    monkeypatch.setattr(cli_module, "_build_analyzer", lambda ctx: analyzer)
    return analyzer


class TestAnalyzeCommand:
    def test_json_output(self, runner, monkeypatch):
        _install(monkeypatch, StubProvider("P1", result=make_result()))

        result = runner.invoke(cli_module.cli, ["analyze", FRAME_URL, "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "status": "full",
            "capacity": 120,
            "confidence": 90,
            "reasoning": "crowded",
        }

    def test_local_file_is_sent_as_data_url(self, runner, monkeypatch, tmp_path):
        provider = StubProvider("P1", result=make_result())
        _install(monkeypatch, provider)
        path = tmp_path / "frame.jpg"
        Image.new("RGB", (64, 48), color=(10, 20, 30)).save(path)

        result = runner.invoke(cli_module.cli, ["analyze", str(path), "--json"])

        assert result.exit_code == 0, result.output
        assert provider.calls[0].startswith("data:image/jpeg;base64,")

    def test_panel_output(self, runner, monkeypatch):
        _install(monkeypatch, StubProvider("P1", result=make_result()))

        result = runner.invoke(cli_module.cli, ["analyze", FRAME_DATA_URL])

        assert result.exit_code == 0, result.output
        assert "full" in result.output
        assert "Capacity: 120%" in result.output

    def test_missing_file_exits_with_error(self, runner, monkeypatch, tmp_path):
        _install(monkeypatch, StubProvider("P1", result=make_result()))

        result = runner.invoke(cli_module.cli, ["analyze", str(tmp_path / "missing.jpg")])

        assert result.exit_code == 1
        assert "Image not found" in result.output

    def test_all_failed_still_prints_result(self, runner, monkeypatch):
        _install(monkeypatch, StubProvider("P1", error=RuntimeError("timeout")))

        result = runner.invoke(cli_module.cli, ["analyze", FRAME_URL, "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["reasoning"] == "P1: timeout"


class TestProvidersCommand:
    def test_json_output(self, runner, monkeypatch):
        _install(monkeypatch, StubProvider("P1"), StubProvider("P2"))

        result = runner.invoke(cli_module.cli, ["providers", "--json"])

        assert result.exit_code == 0, result.output
        info = json.loads(result.output)
        assert info["primary"] == "p1"
        assert [p["name"] for p in info["available"]] == ["P1", "P2"]

    def test_table_output(self, runner, monkeypatch):
        _install(monkeypatch, StubProvider("P1"))

        result = runner.invoke(cli_module.cli, ["providers"])

        assert result.exit_code == 0, result.output
        assert "p1-model" in result.output

    def test_no_providers_exits(self, runner, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        def fail(settings):
            raise NoProvidersAvailableError("No AI providers configured.")

        monkeypatch.setattr(cli_module.CongestionAnalyzer, "from_settings", staticmethod(fail))

        result = runner.invoke(cli_module.cli, ["providers"])

        assert result.exit_code == 1
        assert "No AI providers configured" in result.output


    def test_missing_env_file_exits(self, runner, tmp_path):
        missing = tmp_path / "missing.env"

        result = runner.invoke(cli_module.cli, ["--env-file", str(missing), "providers"])

        assert result.exit_code == 1
        assert not isinstance(result.exception, FileNotFoundError)
        assert "Env file not found" in result.output


class TestCheckCommand:
    def test_reports_each_provider(self, runner, monkeypatch):
        _install(
            monkeypatch,
            StubProvider("P1", error=RuntimeError("timeout")),
            StubProvider("P2", result=make_result()),
        )

        result = runner.invoke(cli_module.cli, ["check", FRAME_URL])

        assert result.exit_code == 1
        assert "timeout" in result.output
        assert "P2" in result.output

    def test_all_ok(self, runner, monkeypatch):
        _install(monkeypatch, StubProvider("P1", result=make_result()))

        result = runner.invoke(cli_module.cli, ["check", FRAME_URL])

        assert result.exit_code == 0, result.output
