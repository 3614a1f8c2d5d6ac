# cli.py
import argparse
import json
import os
import sys

print("[CLI] Booting...")

from dotenv import load_dotenv
_loaded = load_dotenv()
print(f"[CLI] .env loaded: {_loaded}")
print(f"[CLI] ENV presence -> BSC RPC: {'yes' if os.getenv('WEB3_PROVIDER_BSC') else 'no (public default)'}")

from backend.core.analyze import analyze_token, get_chart_analysis
from backend.core.chart_analysis import InsufficientCandlesError
from backend.utils.addr import normalize_bsc_address

RISK_BADGES = {
    "low": "✅ LOW RISK",
    "moderate": "⚠️  MODERATE RISK",
    "elevated": "🟠 ELEVATED RISK",
    "high": "❗ HIGH RISK",
}


def _usd(x: float) -> str:
    return f"${x:,.0f}" if x >= 1 else f"${x:.8f}"


def print_report(result: dict) -> None:
    token = result["token"]
    market = result["market"]
    risk = result["risk"]
    tech = result["technical"]
    rug = result["rugRisk"]
    surv = result["survivalAnalysis"]
    com = result["commentary"]
    hp = result["honeypot"]

    print(f"🔎 {token['name']} ({token['symbol']})  {result['address']}  chain={result['chain']}")
    print(f"🔹 Pair: {market['pairAddress'] or 'n/a'} on {market['dexName']}")
    print(f"🔹 Price {_usd(market['priceUsd'])}  24h {market['priceChange24hPct']:+.1f}%  "
          f"liq {_usd(market['liquidityUsd'])}  vol24h {_usd(market['volume24hUsd'])}")
    print(f"📅 Age ≈ {risk['tokenAgeDays']:.1f} days")

    if not hp["verified"]:
        print("❓ Honeypot: could not verify (security provider unavailable)")
    elif hp["isHoneypot"]:
        print(f"🚨 Honeypot: {hp['reason']}")
    else:
        print(f"✅ Honeypot: none detected (buy tax {hp['buyTax']}%, sell tax {hp['sellTax']}%)")
    print("✅ Ownership renounced." if token["isOwnerRenounced"]
          else f"🚩 Ownership NOT renounced — owner={token['ownerAddress']}")

    m, v, pr = tech["momentum"], tech["volatility"], tech["pressure"]
    print(f"📈 Momentum {m['score']:.2f} ({m['label']})  Volatility {v['index']:.2f} ({v['label']})  "
          f"Pressure {pr['label']}")

    if rug["isHighRisk"]:
        print(f"💀 Rug risk: {rug['severity'].upper()}")
        for f in rug["flags"]:
            print(f"   - {f}")

    print(f"⏳ Survival {surv['survivalScore']}/100 ({surv['survivalProbability']})")
    print(f"   {surv['recommendation']}")

    print(f"🧮 Final Risk Score: {risk['score']}/100  {RISK_BADGES.get(risk['level'], risk['level'])}")
    for f in risk["flags"]:
        print(f"   - {f}")
    print(f"💬 {com['sentiment']} | {com['recommendation']}: {com['recommendationDetail']}")
    print(f"   Scenario: {com['scenario']} — {com['scenarioDetail']}")

    degraded = [k for k, s in result["dataSources"].items() if not s["ok"]]
    if degraded:
        print(f"ℹ️ Degraded sources (defaults used): {', '.join(degraded)}")


def print_chart(chart: dict) -> None:
    ti = chart["technicalIndicators"]
    pa = chart["priceAction"]
    rec = chart["recommendation"]
    print(f"🕯️ {chart['candleInfo']['count']} x {chart['timeframe']} candles "
          f"({chart['candleInfo']['firstCandle']} → {chart['candleInfo']['lastCandle']})")
    if ti["rsi"]:
        print(f"🔹 RSI(14) {ti['rsi']['value']} {ti['rsi']['signal']}")
    if ti["macd"]:
        print(f"🔹 MACD {ti['macd']['interpretation']} (hist {ti['macd']['histogram']})")
    if ti["stochRSI"]:
        print(f"🔹 StochRSI K={ti['stochRSI']['k']} D={ti['stochRSI']['d']} {ti['stochRSI']['signal']}")
    if ti["adx"]:
        print(f"🔹 ADX {ti['adx']['value']} {ti['adx']['signal']}")
    print(f"🔹 Trend {pa['trend']}  support={pa['support']} resistance={pa['resistance']}")
    print(f"🎯 {rec['action']} ({rec['confidence']}): {'; '.join(rec['reasoning']) or 'no strong signals'}")


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="BSC Token Radar CLI")
    p.add_argument("--address", required=True, help="BEP-20 contract address")
    p.add_argument("--json", action="store_true", help="Print JSON only")
    p.add_argument("--chart", action="store_true", help="Include OHLCV chart analysis")
    args = p.parse_args(argv)
    print(f"[CLI] Args -> address={args.address} json={args.json} chart={args.chart}")

    try:
        normalize_bsc_address(args.address)
    except ValueError as e:
        print(f"[CLI] ❌ {e}", file=sys.stderr)
        return 2

    try:
        result = analyze_token(args.address)
    except Exception as e:
        print("[CLI] analyze_token: FAIL ->", e, file=sys.stderr)
        return 1

    chart = None
    if args.chart:
        try:
            chart = get_chart_analysis(args.address)
        except InsufficientCandlesError as e:
            chart = {"error": str(e)}

    if args.json:
        out = dict(result, chartAnalysis=chart) if args.chart else result
        print(json.dumps(out, indent=2, default=str))
        return 0

    print_report(result)
    if chart is not None:
        if "error" in chart:
            print(f"ℹ️ Chart analysis unavailable: {chart['error']}")
        else:
            print_chart(chart)
    print("[CLI] Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
