# backend/utils/addr.py
import re

from web3 import Web3

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_bsc_address(raw: str | None) -> bool:
    return bool(raw) and ADDRESS_RE.match(raw) is not None


def normalize_bsc_address(raw: str | None) -> str:
    """Strictly validate a BEP-20 address (0x + 40 hex) and return it checksummed."""
    s = raw or ""
    if "..." in s:
        raise ValueError("Ellipses ('...') are not allowed. Provide the full 42-char 0x address.")
    if not is_bsc_address(s):
        raise ValueError("Invalid BNB token address")
    return Web3.to_checksum_address(s)
