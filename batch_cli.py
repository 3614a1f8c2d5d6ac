# batch_cli.py
# Scan a watchlist of BEP-20 addresses and write one CSV row + one JSON object per token.
import argparse
import csv
import json
import os
import sys
from pathlib import Path

print("[BATCH] Booting...")

from dotenv import load_dotenv

print(f"[BATCH] .env loaded: {load_dotenv()} | BSC RPC: "
      f"{'custom' if os.getenv('WEB3_PROVIDER_BSC') else 'public default'}")

from backend.core import batch as batch_scan

FIELDNAMES = [
    "address", "name", "symbol", "price_usd", "liquidity_usd", "volume_24h_usd", "age_days",
    "honeypot", "honeypot_verified", "owner_renounced", "momentum", "momentum_label",
    "rug_severity", "survival_score", "survival_probability", "risk_score", "risk_level",
    "recommendation", "sentiment", "degraded_sources", "error",
]


def load_addresses(path: str) -> list[str]:
    """One address per line; blank lines and #-comments are skipped."""
    src = Path(path)
    if not src.is_file():
        print(f"[BATCH] ❌ No such input file: {path}", file=sys.stderr)
        sys.exit(1)
    lines = (ln.strip() for ln in src.read_text().splitlines())
    addrs = [ln for ln in lines if ln and not ln.startswith("#")]
    print(f"[BATCH] {len(addrs)} address(es) queued from {path}")
    return addrs


def flatten_result(res: dict) -> dict:
    token, market, risk = res["token"], res["market"], res["risk"]
    hp, rug, surv, com = res["honeypot"], res["rugRisk"], res["survivalAnalysis"], res["commentary"]
    momentum = res["technical"]["momentum"]
    return {
        "address": res["address"],
        "name": token["name"],
        "symbol": token["symbol"],
        "price_usd": market["priceUsd"],
        "liquidity_usd": f"{market['liquidityUsd']:.0f}",
        "volume_24h_usd": f"{market['volume24hUsd']:.0f}",
        "age_days": f"{risk['tokenAgeDays']:.1f}",
        "honeypot": hp["isHoneypot"],
        "honeypot_verified": hp["verified"],
        "owner_renounced": token["isOwnerRenounced"],
        "momentum": f"{momentum['score']:.2f}",
        "momentum_label": momentum["label"],
        "rug_severity": rug["severity"],
        "survival_score": surv["survivalScore"],
        "survival_probability": surv["survivalProbability"],
        "risk_score": risk["score"],
        "risk_level": risk["level"],
        "recommendation": com["recommendation"],
        "sentiment": com["sentiment"],
        "degraded_sources": ";".join(k for k, s in res["dataSources"].items() if not s["ok"]),
        "error": "",
    }


def error_row(addr: str, err) -> dict:
    row = dict.fromkeys(FIELDNAMES, "")
    row.update(address=addr, error=str(err))
    return row


def to_row(res: dict) -> dict:
    return error_row(res["address"], res["error"]) if "error" in res else flatten_result(res)


def _report(res: dict) -> None:
    if "error" in res:
        print(f"[BATCH] {res['address']} -> ERROR {res['error']}")
    else:
        print(f"[BATCH] {res['address']} -> {res['risk']['score']}/100 ({res['risk']['level']}) "
              f"{res['commentary']['recommendation']}")


def write_outputs(results: list, out_csv: str, out_json: str) -> None:
    with open(out_csv, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        writer.writerows(to_row(r) for r in results)
    print(f"[BATCH] CSV  -> {out_csv}")

    Path(out_json).write_text(json.dumps(results, indent=2, default=str))
    print(f"[BATCH] JSON -> {out_json}")


def main(argv=None):
    p = argparse.ArgumentParser(description="BSC Token Radar batch scanner")
    p.add_argument("--infile", required=True, help="Text file, one BEP-20 address per line")
    p.add_argument("--out-csv", default="batch_scan.csv", help="Where to write the CSV summary")
    p.add_argument("--out-json", default="batch_scan.json", help="Where to write the full JSON results")
    p.add_argument("--concurrency", type=int, default=2, help="Parallel scans (1-3 is safe on free tiers)")
    p.add_argument("--qps", type=float, default=None, help="Cap requests/second per upstream API")
    args = p.parse_args(argv)
    print(f"[BATCH] Args -> {vars(args)}")

    addresses = load_addresses(args.infile)
    results = batch_scan.scan_many(addresses, args.concurrency, args.qps, on_result=_report)
    write_outputs(results, args.out_csv, args.out_json)
    print(f"✅ Scanned {len(results)} token(s). CSV → {args.out_csv}  JSON → {args.out_json}")


if __name__ == "__main__":
    main()
