"""
YAML scenario runner.

A scenario drives one in-memory host and one pool through timed operations:

    config:                 # optional PoolConfig overrides
      user_ttl: 86400
    pool:
      admin: admin
      token_a: token_a
      token_b: token_b
      reward_token: reward
      reward_funding_account: treasury
    mint:                   # initial balances
      - {token: token_a, to: alice, amount: 10000}
    approve:                # spender defaults to the pool; token "share" is the pool-share token
      - {token: token_a, owner: alice, amount: 10000}
    steps:
      - at: 0
        op: deposit
        auth: [alice]
        args: {to: alice, desired_a: 1000, min_a: 0, desired_b: 1000, min_b: 0}
        expect: {ok: true, value: [1000, 1000]}

Each step advances the clock to `at` (never backwards), invokes the operation
and, if `expect` is present, compares `ok`, `value` and `error_kind`.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .config import HostSettings, pool_config_from_mapping
from .host import InMemoryHost
from .invoke import InvocationResult, invoke

logger = logging.getLogger(__name__)

POOL_CODE_REFERENCE = "liquidity_pool:v1"
SHARE_TOKEN_CODE_REFERENCE = "token:v1"
POOL_PLACEHOLDER = "pool"


@dataclass(frozen=True)
class StepOutcome:
    index: int
    op: str
    at: int
    result: InvocationResult
    mismatch: Optional[str] = None


@dataclass
class ScenarioReport:
    pool_address: str
    outcomes: List[StepOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[StepOutcome]:
        return [o for o in self.outcomes if o.mismatch is not None]

    @property
    def passed(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool": self.pool_address,
            "passed": self.passed,
            "steps": [
                {
                    "index": o.index,
                    "op": o.op,
                    "at": o.at,
                    "ok": o.result.ok,
                    "value": _plain(o.result.value),
                    "error_kind": o.result.error_kind,
                    "mismatch": o.mismatch,
                }
                for o in self.outcomes
            ],
        }


def _plain(value: Any) -> Any:
    """Normalize operation results into YAML-comparable values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {k: _plain(v) for k, v in dataclasses.asdict(value).items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    return value


def load_scenario(path: Path) -> Mapping[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        doc = yaml.safe_load(f)
    if not isinstance(doc, Mapping):
        raise ValueError(f"scenario must be a mapping: {path}")
    return doc


def _check_expectation(expect: Mapping[str, Any], result: InvocationResult) -> Optional[str]:
    if "ok" in expect and bool(expect["ok"]) != result.ok:
        return f"expected ok={expect['ok']}, got ok={result.ok} ({result.error_kind}: {result.error})"
    if "error_kind" in expect and expect["error_kind"] != result.error_kind:
        return f"expected error_kind={expect['error_kind']}, got {result.error_kind}"
    if "value" in expect and _plain(expect["value"]) != _plain(result.value):
        return f"expected value={expect['value']!r}, got {_plain(result.value)!r}"
    return None


def _resolve(address: str, pool_address: str) -> str:
    return pool_address if address == POOL_PLACEHOLDER else address


def run_scenario(doc: Mapping[str, Any], *, settings: Optional[HostSettings] = None) -> ScenarioReport:
    """
    Run a parsed scenario document on a host built from `settings`.

    The document's `config:` overrides apply on top of `settings.pool`.

    Raises:
        ValueError: If the document is malformed or setup fails
    """
    settings = settings or HostSettings()
    config = pool_config_from_mapping(doc.get("config") or {}, base=settings.pool)
    pool_doc = doc.get("pool")
    if not isinstance(pool_doc, Mapping):
        raise ValueError("scenario.pool must be a mapping")

    host = InMemoryHost(settings=settings)
    pool = host.deploy_pool(POOL_CODE_REFERENCE, salt=str(doc.get("salt", "scenario")), config=config)

    for name in (pool_doc["token_a"], pool_doc["token_b"], pool_doc["reward_token"]):
        host.create_token(name)

    result = invoke(
        host,
        pool,
        "initialize",
        {
            "admin": pool_doc["admin"],
            "code_reference": SHARE_TOKEN_CODE_REFERENCE,
            "token_a": pool_doc["token_a"],
            "token_b": pool_doc["token_b"],
            "reward_token": pool_doc["reward_token"],
            "reward_funding_account": pool_doc["reward_funding_account"],
        },
    )
    if not result.ok:
        raise ValueError(f"scenario setup failed: {result.error_kind}: {result.error}")

    for entry in doc.get("mint") or []:
        host.token(entry["token"]).mint(_resolve(entry["to"], pool.address), int(entry["amount"]))
    for entry in doc.get("approve") or []:
        token = pool.share_id() if entry["token"] == "share" else entry["token"]
        host.token(token).approve(
            _resolve(entry["owner"], pool.address),
            _resolve(entry.get("spender", POOL_PLACEHOLDER), pool.address),
            int(entry["amount"]),
        )

    report = ScenarioReport(pool_address=pool.address)
    for index, step in enumerate(doc.get("steps") or []):
        if not isinstance(step, Mapping) or "op" not in step:
            raise ValueError(f"step {index} must be a mapping with an 'op'")
        at = int(step.get("at", host.clock.now()))
        host.clock.set(at)

        result = invoke(host, pool, step["op"], step.get("args") or {}, auth=list(step.get("auth") or []))
        expect = step.get("expect")
        mismatch = _check_expectation(expect, result) if isinstance(expect, Mapping) else None
        if mismatch is not None:
            logger.warning(f"Step {index} ({step['op']}) mismatch: {mismatch}")
        report.outcomes.append(StepOutcome(index=index, op=step["op"], at=at, result=result, mismatch=mismatch))

    logger.info(f"Scenario finished: {len(report.outcomes)} steps, {len(report.failures)} mismatches")
    return report
