# backend/utils/identity.py
from typing import Optional

from web3 import Web3

from backend.chains import get_w3_for_chain
from backend.core.models import TokenIdentity
from backend.utils.ratelimit import UpstreamError

ZERO = "0x0000000000000000000000000000000000000000"
# burn addresses that count as renounced ownership
RENOUNCED_OWNERS = {ZERO, "0x000000000000000000000000000000000000dead"}


def _dbg(msg: str) -> None:
    print(f"[identity] {msg}")


def _eth_call(w3: Web3, address: str, sig: str) -> Optional[bytes]:
    """Low-level call (no ABI) by 4-byte selector. None when the call reverts or returns nothing."""
    try:
        selector = w3.keccak(text=sig)[:4]
        res = w3.eth.call({"to": address, "data": "0x" + selector.hex()})
    except Exception as e:
        _dbg(f"{sig} failed: {e}")
        return None
    return bytes(res) if res else None


def _decode_text(w3: Web3, raw: Optional[bytes]) -> Optional[str]:
    """ABI string, falling back to bytes32 for old-style tokens. Non-printable bytes are dropped."""
    if not raw:
        return None
    text = None
    if len(raw) >= 64:
        try:
            text = w3.codec.decode(["string"], raw)[0]
        except Exception:
            text = None
    if text is None and len(raw) == 32:
        text = raw.rstrip(b"\x00").decode("latin-1")
    if text is None:
        return None
    text = "".join(ch for ch in text if 32 <= ord(ch) <= 126).strip()
    return text or None


def _decode_uint(raw: Optional[bytes]) -> Optional[int]:
    if not raw or len(raw) < 32:
        return None
    return int.from_bytes(raw[:32], "big")


def _decode_address(raw: Optional[bytes]) -> Optional[str]:
    if not raw or len(raw) < 32:
        return None
    return Web3.to_checksum_address("0x" + raw[12:32].hex())


def is_renounced(owner: Optional[str]) -> bool:
    """No readable owner() counts as renounced, as does a zero/burn owner."""
    return owner is None or owner.lower() in RENOUNCED_OWNERS


def read_identity(address: str, chain_key: str = "bsc", w3: Optional[Web3] = None) -> TokenIdentity:
    """
    name/symbol/decimals/owner via raw eth_call. Missing getters fall back to
    TokenIdentity defaults; raises UpstreamError only when the RPC answered none of them.
    """
    w3 = w3 or get_w3_for_chain(chain_key)
    addr = Web3.to_checksum_address(address)

    raw = {sig: _eth_call(w3, addr, sig) for sig in ("name()", "symbol()", "decimals()", "owner()")}
    if all(v is None for v in raw.values()):
        raise UpstreamError("bsc_rpc", f"no eth_call answered for {addr}")

    name = _decode_text(w3, raw["name()"])
    symbol = _decode_text(w3, raw["symbol()"])
    decimals = _decode_uint(raw["decimals()"])
    owner = _decode_address(raw["owner()"])

    ident = TokenIdentity(
        name=name or "Unknown Token",
        symbol=symbol or "UNKNOWN",
        decimals=decimals if decimals is not None and decimals <= 255 else 18,
        owner_address=owner,
        is_owner_renounced=is_renounced(owner),
    )
    _dbg(f"{addr}: {ident.symbol} dec={ident.decimals} owner={owner} renounced={ident.is_owner_renounced}")
    return ident
