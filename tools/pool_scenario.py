#!/usr/bin/env python3
"""
Run a YAML pool scenario against an in-memory host and print the step report.

Example:
  python3 tools/pool_scenario.py scenarios/basic_pool.yaml --log-level INFO

Host settings (TTLs, chain id, signed invocations) come from the LP_POOL_*
environment variables.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from liquidity_pool.integration.config import config_from_env
from liquidity_pool.integration.scenario import load_scenario, run_scenario


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Run a liquidity pool scenario (YAML) and report each step.")
    p.add_argument("scenario", type=Path, help="Path to the scenario YAML file")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    p.add_argument("--json", action="store_true", help="Print the report as JSON instead of one line per step")
    args = p.parse_args(argv)

    logging.basicConfig(level=str(args.log_level).upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        report = run_scenario(load_scenario(args.scenario), settings=config_from_env())
    except (OSError, yaml.YAMLError, ValueError, KeyError) as exc:
        print(f"pool_scenario error: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, sort_keys=True))
    else:
        for o in report.outcomes:
            status = "ok" if o.result.ok else f"ERR {o.result.error_kind}"
            line = f"[{o.index}] t={o.at} {o.op}: {status} {o.result.value if o.result.ok else ''}".rstrip()
            if o.mismatch:
                line += f"  MISMATCH: {o.mismatch}"
            print(line)
    return 0 if report.passed else 1


if __name__ == "__main__":
    raise SystemExit(main())
