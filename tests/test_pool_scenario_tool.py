from __future__ import annotations

import json
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def test_pool_scenario_cli_json(capsys) -> None:
    from tools.pool_scenario import main

    rc = main([str(ROOT / "scenarios" / "basic_pool.yaml"), "--json"])
    out = json.loads(capsys.readouterr().out)
    assert rc == 0
    assert out["passed"] is True
    assert out["steps"][2]["value"] == 112


def test_pool_scenario_cli_missing_file(tmp_path: Path, capsys) -> None:
    from tools.pool_scenario import main

    rc = main([str(tmp_path / "missing.yaml")])
    assert rc == 2
    assert "pool_scenario error" in capsys.readouterr().err


def test_pool_scenario_cli_reads_host_settings_from_env(monkeypatch, capsys) -> None:
    from tools.pool_scenario import main

    monkeypatch.setenv("LP_POOL_REQUIRE_SIGS", "1")
    rc = main([str(ROOT / "scenarios" / "basic_pool.yaml"), "--json"])
    out = json.loads(capsys.readouterr().out)
    assert rc == 1
    assert out["steps"][0]["error_kind"] == "Unauthorized"


def test_pool_scenario_cli_rejects_malformed_env(monkeypatch, capsys) -> None:
    from tools.pool_scenario import main

    monkeypatch.setenv("LP_POOL_USER_TTL", "soon")
    rc = main([str(ROOT / "scenarios" / "basic_pool.yaml")])
    assert rc == 2
    assert "LP_POOL_USER_TTL" in capsys.readouterr().err
