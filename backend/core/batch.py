# backend/core/batch.py
# Purpose: Run analyze_token over many addresses with bounded parallelism.
# A failing address becomes {"address", "error"}; it never aborts the batch.
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Sequence

from backend.core.analyze import analyze_token

MAX_WORKERS = 8


def scan_one(address: str, tag: str = "BATCH", max_qps: Optional[float] = None) -> Dict[str, Any]:
    print(f"[{tag}][WORK] Start {address}")
    try:
        res = analyze_token(address, max_qps=max_qps)
    except Exception as e:
        print(f"[{tag}][WORK] FAIL {address} -> {e}")
        return {"address": address, "error": str(e)}
    print(f"[{tag}][WORK] OK {address} score={res['risk']['score']} level={res['risk']['level']}")
    return res


def scan_many(
    addresses: Sequence[str],
    concurrency: int = 2,
    qps: Optional[float] = None,
    tag: str = "BATCH",
    on_result: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> List[Dict[str, Any]]:
    """
    Results come back in completion order, one per input address.
    ``qps`` caps this batch's upstream calls per host; other requests keep their own rate.
    """
    if qps is not None:
        print(f"[{tag}] Upstream rate capped at {qps} req/s for this batch")

    workers = max(1, min(MAX_WORKERS, concurrency))
    print(f"[{tag}] Scanning {len(addresses)} address(es) with {workers} worker(s)")
    results: List[Dict[str, Any]] = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        pending = [pool.submit(scan_one, a, tag, qps) for a in addresses]
        for fut in as_completed(pending):
            res = fut.result()
            results.append(res)
            if on_result is not None:
                on_result(res)

    failed = sum(1 for r in results if "error" in r)
    print(f"[{tag}] Batch finished: {len(results) - failed} ok, {failed} failed")
    return results
