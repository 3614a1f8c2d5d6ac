# api.py
# HTTP surface: token analysis, chart analysis and batch scans under /api.
# Run with: uvicorn api:app --port 8000
import os
from typing import Any, Callable, Dict, List, Optional

print("[API] Booting FastAPI...")

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

_loaded = load_dotenv()
print(f"[API] .env loaded: {_loaded} | BSC RPC: "
      f"{'custom' if os.getenv('WEB3_PROVIDER_BSC') else 'public default'} | "
      f"UPSTREAM_QPS: {os.getenv('UPSTREAM_QPS') or 'default'}")

from backend.core import batch as batch_scan
from backend.core.analyze import analyze_token, get_chart_analysis
from backend.core.chart_analysis import InsufficientCandlesError
from backend.utils.addr import normalize_bsc_address

print("[API] Engine imports OK")

app = FastAPI(title="BSC Token Radar API", version="0.4.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
print("[API] CORS open to all origins (GET/POST).")

router = APIRouter(prefix="/api")


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


def _guarded(route: str, fn: Callable[[str], Dict[str, Any]], address: str):
    """
    Run one address-keyed engine call and map failures onto {"error": ...}:
      bad address               -> 400 (checked before the engine runs)
      InsufficientCandlesError  -> 422 (not enough OHLCV history)
      anything else             -> 500
    """
    print(f"[API] GET /api/{route}?address={address}")
    try:
        normalize_bsc_address(address)
    except ValueError as e:
        print(f"[API] /{route} rejected address={address!r} -> {e}")
        return _error(400, "Invalid BNB token address")

    try:
        return fn(address)
    except InsufficientCandlesError as e:
        print(f"[API] /{route} not enough data for {address} -> {e}")
        return _error(422, str(e))
    except Exception as e:
        print(f"[API] /{route} FAILED for {address} -> {e!r}")
        return _error(500, str(e) or f"{route} failed")


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/analyze-token")
def analyze(address: str = Query(default="", description="BEP-20 contract address")):
    out = _guarded("analyze-token", analyze_token, address)
    if isinstance(out, dict):
        print(f"[API] /analyze-token {address} -> score={out['risk']['score']} "
              f"rec={out['commentary']['recommendation']}")
    return out


@router.get("/chart-analysis")
def chart_analysis(address: str = Query(default="", description="BEP-20 contract address")):
    out = _guarded("chart-analysis", get_chart_analysis, address)
    if isinstance(out, dict):
        print(f"[API] /chart-analysis {address} -> action={out['recommendation']['action']}")
    return out


class BatchRequest(BaseModel):
    addresses: List[str]
    concurrency: int = Field(default=2, ge=1, description="Parallel scans (capped at 8)")
    qps: Optional[float] = Field(default=None, gt=0, description="Per-upstream request cap")


@router.post("/batch")
def batch(req: BatchRequest):
    print(f"[API] POST /api/batch count={len(req.addresses)} concurrency={req.concurrency} qps={req.qps}")
    if not req.addresses:
        raise HTTPException(status_code=400, detail="addresses list is empty")
    results = batch_scan.scan_many(req.addresses, req.concurrency, req.qps, tag="API")
    return {"count": len(results), "results": results}


app.include_router(router)
print("[API] Routes mounted under /api")
