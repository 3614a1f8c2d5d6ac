# backend/chains.py
# Purpose: BSC chain config, upstream endpoints + web3 factory (Web3 v7). Injects POA middleware for BSC.

import os
from web3 import Web3
from web3.middleware.proof_of_authority import ExtraDataToPOAMiddleware

print("[CHAINS] module loaded (web3 v7)")

DEFAULT_BSC_RPC = "https://bsc-dataseed.binance.org"

CHAINS = {
    "bsc": {
        "name": "bsc",
        "chainid": 56,
        "rpc_env": "WEB3_PROVIDER_BSC",
        "dexscreener_id": "bsc",
        "geckoterminal_network": "bsc",
        "goplus_id": os.getenv("GOPLUS_CHAIN_ID", "56"),
    },
}

ENDPOINTS = {
    "dexscreener_tokens": "https://api.dexscreener.com/latest/dex/tokens/{address}",
    "dexscreener_profiles": "https://api.dexscreener.com/token-profiles/latest/v1",
    "dexscreener_boosts": "https://api.dexscreener.com/token-boosts/latest/v1",
    "goplus_security": "https://api.gopluslabs.io/api/v1/token_security/{chain_id}",
    "geckoterminal_ohlcv": "https://api.geckoterminal.com/api/v2/networks/{network}/pools/{pool}/ohlcv/{timeframe}",
}

# Requests per second per upstream host key (free tiers)
HOST_QPS = {
    "dexscreener": 4.0,
    "geckoterminal": 0.5,
    "goplus": 2.0,
}

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "15"))


def get_w3_for_chain(chain_key: str = "bsc") -> Web3:
    print(f"[CHAINS] get_w3_for_chain({chain_key})")
    if chain_key not in CHAINS:
        raise ValueError(f"Unknown chain: {chain_key}")

    cfg = CHAINS[chain_key]
    rpc = (os.getenv(cfg["rpc_env"]) or "").strip().rstrip("\r")

    if not rpc or rpc in {"https://", "http://"}:
        rpc = DEFAULT_BSC_RPC
        print(f"[CHAINS] Using default BSC RPC: {rpc}")

    print(f"[CHAINS] HTTPProvider -> {rpc}")
    w3 = Web3(Web3.HTTPProvider(rpc, request_kwargs={"timeout": HTTP_TIMEOUT}))

    # BSC blocks carry POA extraData
    if cfg["chainid"] in (56, 97):
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        print(f"[CHAINS] POA middleware injected (ExtraDataToPOAMiddleware) for {chain_key}")

    return w3


__all__ = ["CHAINS", "ENDPOINTS", "HOST_QPS", "HTTP_TIMEOUT", "get_w3_for_chain"]
