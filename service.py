"""FastAPI service exposing Fetch Pet claim operations over HTTP.

- GET  /claims              → active then historical claims
- GET  /claims/{claim_id}   → claim details (+ downloaded EOB / invoice paths)
- POST /claims/prepare      → fill the claim form, return the confirmation token
- POST /claims/submit       → submit the prepared claim with its token

Run with:
  uvicorn service:app --host 0.0.0.0 --port ${PORT:-8000}

Login to the portal starts in the background when the app starts, so the
service accepts connections right away; the first request waits for it.
All requests share one browser page, so they are handled one at a time.
"""

import asyncio
import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import load_config
from portal import ClientManager, FetchPetClient, FetchPetError, LoginError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Fetch Pet Claims Service", version="1.0.0")

# One page per client: never let two requests drive it at once
_page_lock = asyncio.Lock()


class PrepareClaimRequest(BaseModel):
    pet_name: str
    invoice_date: str
    invoice_amount: str
    provider_name: str
    claim_description: str
    invoice_file_path: str | None = None
    medical_records_path: str | None = None


class SubmitClaimRequest(BaseModel):
    confirmation_token: str


def _manager() -> ClientManager:
    manager = getattr(app.state, "client_manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Service is not configured.")
    return manager


async def _ready_client() -> FetchPetClient:
    try:
        return await _manager().get_ready_client()
    except LoginError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


def _portal_error(e: FetchPetError) -> HTTPException:
    logger.error("Portal operation failed: %s", e, exc_info=True)
    return HTTPException(status_code=500, detail=str(e))


@app.get("/claims")
async def list_claims() -> JSONResponse:
    """Active claims first, then historical claims."""
    async with _page_lock:
        client = await _ready_client()
        try:
            claims = await client.get_claims()
        except FetchPetError as e:
            raise _portal_error(e) from e
    return JSONResponse({"count": len(claims), "claims": [claim.to_dict() for claim in claims]})


@app.get("/claims/{claim_id}")
async def claim_details(claim_id: str) -> JSONResponse:
    """Claim details; 404 when the claim cannot be found on the portal."""
    async with _page_lock:
        client = await _ready_client()
        try:
            details = await client.get_claim_details(claim_id)
        except FetchPetError as e:
            raise _portal_error(e) from e
    if details.error:
        raise HTTPException(status_code=404, detail=details.error)
    return JSONResponse(details.to_dict())


@app.post("/claims/prepare")
async def prepare_claim(request: PrepareClaimRequest) -> JSONResponse:
    """Fill the claim form without submitting. 422 with the validation errors if it is not ready."""
    async with _page_lock:
        client = await _ready_client()
        try:
            data = await client.prepare_claim_to_submit(
                request.pet_name,
                request.invoice_date,
                request.invoice_amount,
                request.provider_name,
                request.claim_description,
                request.invoice_file_path,
                request.medical_records_path,
            )
        except FetchPetError as e:
            raise _portal_error(e) from e
    body: dict[str, Any] = data.to_dict()
    return JSONResponse(body, status_code=200 if data.is_ready_to_submit else 422)


@app.post("/claims/submit")
async def submit_claim(request: SubmitClaimRequest) -> JSONResponse:
    """Submit the prepared claim. 409 when the token is rejected or submission is not confirmed."""
    async with _page_lock:
        client = await _ready_client()
        try:
            outcome = await client.submit_claim(request.confirmation_token)
        except FetchPetError as e:
            raise _portal_error(e) from e
    return JSONResponse(outcome.to_dict(), status_code=200 if outcome.success else 409)


@app.on_event("startup")
async def startup_event():
    """Create the portal client and start logging in without blocking startup."""
    if getattr(app.state, "client_manager", None) is not None:
        return
    try:
        config = load_config()
    except ValueError as e:
        logger.error("Fetch Pet client not configured: %s", e)
        return
    manager = ClientManager(lambda: FetchPetClient(config))
    app.state.client_manager = manager
    manager.start_background_login(
        on_failed=lambda error: logger.error("Login failed; claim endpoints will return 503: %s", error)
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Close the browser when the app shuts down."""
    manager = getattr(app.state, "client_manager", None)
    if manager is not None:
        await manager.cleanup()
        logger.info("Browser closed")
