# backend/utils/dexscreener.py
from typing import Any, List, Optional

from backend.chains import ENDPOINTS
from backend.core.schemas import DexPair, DexTokenPairs, TokenBoost, TokenProfile
from backend.utils.cache import memoize_ttl
from backend.utils.ratelimit import http_get_json

HOST = "dexscreener"


def _dbg(msg: str):
    print(f"[dexscreener] {msg}")


def fetch_token_pairs(address: str, max_qps: Optional[float] = None) -> List[DexPair]:
    """Every pair DexScreener lists for ``address`` (any chain). Empty list when unlisted."""
    url = ENDPOINTS["dexscreener_tokens"].format(address=address)
    data = http_get_json(HOST, url, max_qps=max_qps)
    pairs = DexTokenPairs.model_validate(data if isinstance(data, dict) else {}).pairs
    _dbg(f"{address}: {len(pairs)} pair(s)")
    return pairs


def _as_list(data: Any) -> list:
    return [row for row in data if isinstance(row, dict)] if isinstance(data, list) else []


# Both feeds are token-independent, so one fetch serves every request for a minute.
@memoize_ttl(60)
def fetch_latest_profiles(max_qps: Optional[float] = None) -> List[TokenProfile]:
    rows = _as_list(http_get_json(HOST, ENDPOINTS["dexscreener_profiles"], max_qps=max_qps))
    _dbg(f"latest profiles: {len(rows)}")
    return [TokenProfile.model_validate(r) for r in rows]


@memoize_ttl(60)
def fetch_latest_boosts(max_qps: Optional[float] = None) -> List[TokenBoost]:
    rows = _as_list(http_get_json(HOST, ENDPOINTS["dexscreener_boosts"], max_qps=max_qps))
    _dbg(f"latest boosts: {len(rows)}")
    return [TokenBoost.model_validate(r) for r in rows]
