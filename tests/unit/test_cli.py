"""CLI command tests."""

import json

import yaml
from typer.testing import CliRunner

from autosd.cli import app


def test_config_command_prints_effective_config(tmp_path, monkeypatch):
    monkeypatch.delenv("AUTOSD_REFRESH_INTERVAL", raising=False)
    monkeypatch.delenv("AUTOSD_OUTPUT_FILE", raising=False)
    config_path = tmp_path / "config.yaml"
    config_path.write_text("discovery:\n  refresh_interval: 7\nhttp:\n  port: 9999\n")

    runner = CliRunner()
    result = runner.invoke(app, ["config", "--config", str(config_path)])

    assert result.exit_code == 0, result.stdout
    printed = yaml.safe_load(result.stdout)
    assert printed["discovery"]["refresh_interval"] == 7
    assert printed["http"]["port"] == 9999


def test_targets_command_lists_groups(tmp_path):
    path = tmp_path / "targets.json"
    path.write_text(
        json.dumps(
            [{"targets": ["10.0.0.1:9100"], "labels": {"__meta_app": "svc-a"}}]
        )
    )

    runner = CliRunner()
    result = runner.invoke(app, ["targets", str(path)])

    assert result.exit_code == 0, result.stdout
    assert "10.0.0.1:9100" in result.stdout
    assert "__meta_app=svc-a" in result.stdout


def test_targets_command_empty_and_missing(tmp_path):
    empty = tmp_path / "empty.json"
    empty.write_text("[]")

    runner = CliRunner()
    result = runner.invoke(app, ["targets", str(empty)])
    assert result.exit_code == 0
    assert "No target groups found" in result.stdout

    missing = runner.invoke(app, ["targets", str(tmp_path / "nope.json")])
    assert missing.exit_code == 1
    assert "does not exist" in missing.stdout


def test_serve_wires_service(monkeypatch, tmp_path):
    captured = {}

    def fake_run(application, host, port, log_level):
        captured.update(app=application, host=host, port=port, log_level=log_level)

    monkeypatch.setattr("autosd.cli.uvicorn.run", fake_run)
    monkeypatch.setenv("AUTOSD_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("AUTOSD_REFRESH_INTERVAL", raising=False)
    monkeypatch.delenv("AUTOSD_OUTPUT_FILE", raising=False)

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["serve", "--port", "9100", "--refresh-interval", "5", "--output", str(tmp_path / "sd.json")],
    )

    assert result.exit_code == 0, result.stdout
    assert captured["port"] == 9100
    assert captured["host"] == "0.0.0.0"
    assert captured["log_level"] == "info"
    assert captured["app"].title == "autosd"


def test_serve_rejects_zero_overrides(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr("autosd.cli.uvicorn.run", lambda *a, **kw: calls.append(kw))
    monkeypatch.setenv("AUTOSD_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("AUTOSD_REFRESH_INTERVAL", raising=False)

    runner = CliRunner()
    zero_interval = runner.invoke(app, ["serve", "--refresh-interval", "0"])
    zero_port = runner.invoke(app, ["serve", "--port", "0"])

    assert zero_interval.exit_code == 1
    assert "Invalid configuration" in zero_interval.stdout
    assert zero_port.exit_code == 1
    assert "Invalid configuration" in zero_port.stdout
    assert calls == []
