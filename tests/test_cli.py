"""Command line tests for the config-check and model-info commands."""

import pytest

from line_hooks.__main__ import main


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n"
        "  port: 8123\n"
        "  environment: production\n"
        "line:\n"
        "  channel_access_token: tok\n"
        "ai:\n"
        "  backend: anthropic\n"
        "  model: claude-test\n"
        "dispatch:\n"
        "  max_concurrent_workflows: 3\n",
        encoding="utf-8",
    )
    return path


def _run_cli(monkeypatch, *args):
    monkeypatch.setattr("sys.argv", ["line-hooks", *args])
    main()


def test_config_check(monkeypatch, capsys, config_file, tmp_path):
    _run_cli(monkeypatch, "config-check", "-c", str(config_file), "-e", str(tmp_path / "absent.env"))

    out = capsys.readouterr().out
    assert f"Configuration valid: {config_file}" in out
    assert "Environment : production" in out
    assert "Listen      : 0.0.0.0:8123" in out
    assert "Concurrency : 3" in out
    assert "Warning: Missing ANTHROPIC_API_KEY" in out
    assert "MESSAGING_API_CHANNEL_ACCESS_TOKEN" not in out


def test_model_info(monkeypatch, capsys, config_file, tmp_path):
    _run_cli(monkeypatch, "model-info", "-c", str(config_file), "-e", str(tmp_path / "absent.env"))

    out = capsys.readouterr().out
    assert "Backend : anthropic" in out
    assert "Model   : claude-test" in out


def test_invalid_config_exits(monkeypatch, capsys, tmp_path):
    bad = tmp_path / "config.yaml"
    bad.write_text("dispatch:\n  max_concurrent_workflows: 0\n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc_info:
        _run_cli(monkeypatch, "config-check", "-c", str(bad), "-e", str(tmp_path / "absent.env"))

    assert exc_info.value.code == 1
    assert "Configuration error" in capsys.readouterr().err
