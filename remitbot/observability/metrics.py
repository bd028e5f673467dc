"""
Observability Metrics
---------------------
Lightweight Redis counters/timers for the chat front-end and a snapshot
consumed by /admin/metrics. Recording is best-effort: a Redis hiccup must
never change what the user is told, so every writer swallows its own errors.
"""
from __future__ import annotations
import time
from typing import Dict, List, Tuple
from remitbot.store.redis_conn import get_redis
from remitbot.settings import settings

K_EVENTS = "metrics:events:{kind}"               # INCR per inbound event kind
K_REMOTE_ATT = "metrics:remote:{op}:attempts"    # INCR
K_REMOTE_OK = "metrics:remote:{op}:ok"           # INCR
K_REMOTE_FAIL = "metrics:remote:{op}:failed"     # INCR
K_REMOTE_LAT = "metrics:remote:latencies"        # LPUSH ms
K_FLOW_DONE = "metrics:flows:{flow}:completed"   # INCR
K_REPLY_FAIL = "metrics:replies:failed"          # INCR
K_UNEXPECTED = "metrics:dispatch:unexpected"     # INCR

REMOTE_OPS = (
    "request_code", "verify_code", "get_profile", "get_kyc_status",
    "list_wallets", "list_balances", "set_default_wallet", "get_default_wallet",
    "send_to_email", "withdraw_to_wallet", "withdraw_to_bank", "deposit",
    "list_transfers",
)
FLOWS = ("login", "logout", "deposit", "send_email", "withdraw_wallet", "offramp")

_MAX_SAMPLES = 500

def _percentile(data: List[float], p: float) -> float:
    """Deterministic percentile (nearest-rank on sorted data)."""
    if not data:
        return 0.0
    d = sorted(data)
    k = max(1, int(round(p * len(d))))
    return float(d[k - 1])

def _incr(key: str) -> None:
    if not settings.ENABLE_METRICS:
        return
    try:
        get_redis().incr(key, 1)
    except Exception:
        pass

def increment_event(kind: str) -> None:
    _incr(K_EVENTS.format(kind=kind))

def increment_remote_attempt(op: str) -> None:
    _incr(K_REMOTE_ATT.format(op=op))

def increment_remote_ok(op: str) -> None:
    _incr(K_REMOTE_OK.format(op=op))

def increment_remote_failed(op: str) -> None:
    _incr(K_REMOTE_FAIL.format(op=op))

def increment_flow_completed(flow: str) -> None:
    _incr(K_FLOW_DONE.format(flow=flow))

def increment_reply_failed() -> None:
    _incr(K_REPLY_FAIL)

def increment_unexpected() -> None:
    _incr(K_UNEXPECTED)

def record_remote_latency(ms: int) -> None:
    if not settings.ENABLE_METRICS:
        return
    try:
        ms = int(ms)
        r = get_redis()
        r.lpush(K_REMOTE_LAT, ms)
        r.ltrim(K_REMOTE_LAT, 0, _MAX_SAMPLES - 1)
    except Exception:
        pass

def _read_int(r, key: str) -> int:
    try:
        return int(r.get(key) or 0)
    except Exception:
        return 0

def _p50_p95(r) -> Tuple[float, float]:
    raw = r.lrange(K_REMOTE_LAT, 0, _MAX_SAMPLES - 1) or []
    vals: List[float] = []
    for x in raw:
        try:
            vals.append(float(x) / 1000.0)
        except (TypeError, ValueError):
            continue
    if not vals:
        return 0.0, 0.0
    return _percentile(vals, 0.50), _percentile(vals, 0.95)

def snapshot() -> dict:
    """Counters and remote latency percentiles (seconds) for dashboards."""
    r = get_redis()
    remote: Dict[str, Dict[str, int]] = {}
    for op in REMOTE_OPS:
        remote[op] = {
            "attempts": _read_int(r, K_REMOTE_ATT.format(op=op)),
            "ok": _read_int(r, K_REMOTE_OK.format(op=op)),
            "failed": _read_int(r, K_REMOTE_FAIL.format(op=op)),
        }
    p50, p95 = _p50_p95(r)
    return {
        "events": {k: _read_int(r, K_EVENTS.format(kind=k)) for k in ("command", "action", "text")},
        "remote": remote,
        "flowsCompleted": {f: _read_int(r, K_FLOW_DONE.format(flow=f)) for f in FLOWS},
        "repliesFailed": _read_int(r, K_REPLY_FAIL),
        "unexpectedErrors": _read_int(r, K_UNEXPECTED),
        "p50_remote_latency": round(p50, 3),
        "p95_remote_latency": round(p95, 3),
        "snapshot_at": int(time.time()),
    }
