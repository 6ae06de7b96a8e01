"""Integration tests for the CLI against a persistent state file."""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from lending_risk.cli import main
from lending_risk.interfaces.store import META, POSITIONS
from lending_risk.storage import FileStore

UPDATE_STX = ("update-asset", "STX", "200", "10", "--caller", "owner")


@pytest.fixture()
def cli_paths(tmp_path: Path) -> tuple[Path, Path]:
    config = tmp_path / "config.yaml"
    config.write_text('owner: "owner"\n')
    return config, tmp_path / "state.json"


def _run_cli(
    monkeypatch: pytest.MonkeyPatch, paths: tuple[Path, Path], *argv: str
) -> None:
    config, state = paths
    monkeypatch.setattr(
        sys,
        "argv",
        ["lending-risk", "--config", str(config), "--state", str(state), *argv],
    )
    main()


class TestCliRoundTrip:
    def test_state_survives_between_invocations(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        cli_paths: tuple[Path, Path],
    ) -> None:
        _run_cli(monkeypatch, cli_paths, *UPDATE_STX)
        asset = json.loads(capsys.readouterr().out)
        assert asset["risk_weight"] == 100
        assert asset["last_update"] == 0

        _run_cli(monkeypatch, cli_paths, "assess", "alice", "STX", "10", "2000")
        quote = json.loads(capsys.readouterr().out)
        assert quote == {
            "approved": True,
            "health_factor": 235,
            "ltv_ratio": 0,
            "risk_score": 25,
        }

        _run_cli(monkeypatch, cli_paths, "monitor")
        report = json.loads(capsys.readouterr().out)
        assert report["timestamp"] == 2
        assert report["summary"]["status"] == "healthy"
        assert report["summary"]["next_cycle_time"] == 2 + 144

        store = FileStore(cli_paths[1])
        assert store.get(META, "clock") == 3

    def test_rejection_exits_with_error_kind(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        cli_paths: tuple[Path, Path],
    ) -> None:
        _run_cli(monkeypatch, cli_paths, *UPDATE_STX)
        capsys.readouterr()

        with pytest.raises(SystemExit) as exc:
            _run_cli(monkeypatch, cli_paths, "assess", "alice", "STX", "1000", "2000")

        assert exc.value.code == 2
        assert "error: risk-too-high" in capsys.readouterr().err
        store = FileStore(cli_paths[1])
        assert store.get(META, "clock") == 1
        assert store.items(POSITIONS) == []

    def test_non_owner_rejected(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        cli_paths: tuple[Path, Path],
    ) -> None:
        with pytest.raises(SystemExit) as exc:
            _run_cli(monkeypatch, cli_paths, "register", "alice", "--caller", "mallory")
        assert exc.value.code == 2
        assert "error: unauthorized" in capsys.readouterr().err

    def test_no_command_prints_help(
        self,
        monkeypatch: pytest.MonkeyPatch,
        cli_paths: tuple[Path, Path],
    ) -> None:
        with pytest.raises(SystemExit) as exc:
            _run_cli(monkeypatch, cli_paths)
        assert exc.value.code == 1
