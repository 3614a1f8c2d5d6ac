# backend/utils/geckoterminal.py
from typing import List, Tuple

from backend.chains import CHAINS, ENDPOINTS
from backend.core.models import Candle
from backend.core.schemas import GeckoOhlcvResponse
from backend.utils.ratelimit import http_get_json

HOST = "geckoterminal"
HEADERS = {"Accept": "application/json;version=20230302"}
MAX_CANDLES = 500


def _dbg(msg: str):
    print(f"[geckoterminal] {msg}")


def timeframe_for_days(days: int) -> Tuple[str, int, str]:
    """(timeframe, aggregate, label) giving enough candles for TA over ``days``."""
    if days <= 3:
        return "minute", 15, "15m"
    if days <= 14:
        return "hour", 1, "1h"
    return "hour", 4, "4h"


def _to_candle(row: list):
    if len(row) < 5:
        return None
    ts, o, h, l, c = row[:5]
    v = row[5] if len(row) > 5 else 0
    try:
        close = float(c)
        if close != close:
            return None
        return Candle(
            timestamp=int(ts), open=float(o), high=float(h), low=float(l), close=close,
            volume=float(v or 0),
        )
    except (TypeError, ValueError):
        return None


def fetch_ohlcv(pool_address: str, timeframe: str = "hour", aggregate: int = 1,
                chain_key: str = "bsc") -> List[Candle]:
    """Chronological candles for a pool, in USD. Rows without a usable close are dropped."""
    url = ENDPOINTS["geckoterminal_ohlcv"].format(
        network=CHAINS[chain_key]["geckoterminal_network"], pool=pool_address, timeframe=timeframe,
    )
    params = {"aggregate": aggregate, "limit": MAX_CANDLES, "currency": "usd"}
    data = http_get_json(HOST, url, params=params, headers=HEADERS)
    rows = GeckoOhlcvResponse.model_validate(data if isinstance(data, dict) else {}).data.attributes.ohlcv_list

    candles = [c for c in (_to_candle(r) for r in rows) if c is not None]
    candles.sort(key=lambda c: c.timestamp)
    _dbg(f"pool={pool_address} {timeframe}x{aggregate}: {len(candles)}/{len(rows)} candles")
    return candles
