# backend/utils/honeypot.py
from typing import Optional

from backend.chains import CHAINS, ENDPOINTS
from backend.core.models import HoneypotFinding
from backend.core.schemas import GoPlusResponse, GoPlusToken
from backend.utils.ratelimit import http_get_json

HOST = "goplus"

# sell taxes above this (percent) make the token a honeypot in practice
MAX_SELL_TAX_PCT = 50.0


def _dbg(msg: str):
    print(f"[honeypot] {msg}")


def _tax_pct(raw: Optional[str]) -> Optional[float]:
    """GoPlus reports taxes as fractions ("0.05"); some tokens come back already in percent."""
    if raw is None or raw.strip() == "":
        return None
    try:
        v = float(raw)
    except ValueError:
        return None
    pct = v * 100 if v <= 1 else v
    return round(pct, 1)


def finding_from_goplus(tok: GoPlusToken) -> HoneypotFinding:
    """
    Map GoPlus flags onto a finding:
      - is_honeypot == "1"                     -> honeypot
      - cannot_sell_all == "1" or 100% tax     -> honeypot, can_sell False
      - sell tax > 50%                         -> honeypot
    """
    buy_tax = _tax_pct(tok.buy_tax)
    sell_tax = _tax_pct(tok.sell_tax)

    flagged = tok.is_honeypot == "1"
    cannot_sell = tok.cannot_sell_all == "1" or (sell_tax is not None and sell_tax >= 100)
    high_tax = sell_tax is not None and sell_tax > MAX_SELL_TAX_PCT

    reason = None
    if flagged:
        reason = "Token flagged as honeypot"
    elif cannot_sell:
        reason = "Token cannot be sold"
    elif high_tax:
        reason = f"Extremely high sell tax: {sell_tax:.1f}%"

    return HoneypotFinding(
        is_honeypot=flagged or cannot_sell or high_tax,
        can_sell=not cannot_sell,
        reason=reason,
        verified=True,
        buy_tax=buy_tax,
        sell_tax=sell_tax,
    )


def check_honeypot(address: str, chain_key: str = "bsc", max_qps: Optional[float] = None) -> HoneypotFinding:
    """GoPlus token-security lookup. Raises ValueError when GoPlus has no record of the token."""
    url = ENDPOINTS["goplus_security"].format(chain_id=CHAINS[chain_key]["goplus_id"])
    data = http_get_json(HOST, url, params={"contract_addresses": address}, max_qps=max_qps)
    resp = GoPlusResponse.model_validate(data if isinstance(data, dict) else {})

    tok = resp.for_token(address)
    if tok is None:
        raise ValueError(f"token not found in security database (code={resp.code})")

    finding = finding_from_goplus(tok)
    _dbg(f"{address}: honeypot={finding.is_honeypot} buy_tax={finding.buy_tax} sell_tax={finding.sell_tax}")
    return finding
