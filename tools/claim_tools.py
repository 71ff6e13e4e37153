"""Fetch Pet claim tools: prepare, submit, list and inspect claims.

Each tool has a plain async ``*_result`` counterpart that does the work against
a ClientManager and returns the JSON text the agent sees; the decorated tools
only pull the manager out of the run context.
"""

import json
from typing import Any

from agents import RunContextWrapper, function_tool

from portal import ClientManager
from storage import log_tool_call


def _manager(ctx: RunContextWrapper[Any]) -> ClientManager:
    return ctx.context.client_manager


def _json(payload: Any) -> str:
    return json.dumps(payload, indent=2)


_LISTINGS = {
    "all": ("get_claims", "claims"),
    "active": ("get_active_claims", "active claims"),
    "historical": ("get_historical_claims", "historical claims"),
}


async def prepare_claim_result(
    manager: ClientManager,
    pet_name: str,
    invoice_date: str,
    invoice_amount: str,
    provider_name: str,
    claim_description: str,
    invoice_file_path: str | None = None,
    medical_records_path: str | None = None,
) -> str:
    args = {
        "pet_name": pet_name,
        "invoice_date": invoice_date,
        "invoice_amount": invoice_amount,
        "provider_name": provider_name,
        "claim_description": claim_description,
        "invoice_file_path": invoice_file_path,
        "medical_records_path": medical_records_path,
    }
    try:
        client = await manager.get_ready_client()
        data = await client.prepare_claim_to_submit(
            pet_name,
            invoice_date,
            invoice_amount,
            provider_name,
            claim_description,
            invoice_file_path,
            medical_records_path,
        )
    except Exception as e:
        result = f"Error preparing claim: {e!s}"
        log_tool_call(tool_name="prepare_claim_to_submit", arguments=args, result=result, success=False)
        return result
    result = _json(data.to_dict())
    log_tool_call(tool_name="prepare_claim_to_submit", arguments=args, result=result, success=data.is_ready_to_submit)
    return result


async def submit_claim_result(manager: ClientManager, confirmation_token: str) -> str:
    args = {"confirmation_token": confirmation_token}
    try:
        client = await manager.get_ready_client()
        outcome = await client.submit_claim(confirmation_token)
    except Exception as e:
        result = f"Error submitting claim: {e!s}"
        log_tool_call(tool_name="submit_claim", arguments=args, result=result, success=False)
        return result
    result = _json(outcome.to_dict())
    log_tool_call(tool_name="submit_claim", arguments=args, result=result, success=outcome.success)
    return result


async def claims_result(manager: ClientManager, which: str = "all") -> str:
    """List claims as JSON. ``which`` is "all", "active" or "historical"."""
    tool_name, label = _LISTINGS[which]
    try:
        client = await manager.get_ready_client()
        if which == "active":
            claims = await client.get_active_claims()
        elif which == "historical":
            claims = await client.get_historical_claims()
        else:
            claims = await client.get_claims()
    except Exception as e:
        result = f"Error getting {label}: {e!s}"
        log_tool_call(tool_name=tool_name, arguments={}, result=result, success=False)
        return result
    result = _json({"count": len(claims), "claims": [claim.to_dict() for claim in claims]})
    log_tool_call(tool_name=tool_name, arguments={}, result=result, success=True)
    return result


async def claim_details_result(manager: ClientManager, claim_id: str) -> str:
    args = {"claim_id": claim_id}
    try:
        client = await manager.get_ready_client()
        details = await client.get_claim_details(claim_id)
    except Exception as e:
        result = f"Error getting claim details: {e!s}"
        log_tool_call(tool_name="get_claim_details", arguments=args, result=result, success=False)
        return result
    result = _json(details.to_dict())
    log_tool_call(tool_name="get_claim_details", arguments=args, result=result, success=details.error is None)
    return result


@function_tool
async def prepare_claim_to_submit(
    ctx: RunContextWrapper[Any],
    pet_name: str,
    invoice_date: str,
    invoice_amount: str,
    provider_name: str,
    claim_description: str,
    invoice_file_path: str | None = None,
    medical_records_path: str | None = None,
) -> str:
    """Fill out a Fetch Pet claim form and validate it WITHOUT submitting it.

    Returns what would be submitted, any validation errors, and (when there are no errors)
    a confirmation message containing the confirmation_token needed by submit_claim.
    The token expires after 2 minutes. The user MUST explicitly confirm before submit_claim is called.

    Args:
        pet_name: Name of the pet for this claim.
        invoice_date: Date of the veterinary invoice (YYYY-MM-DD or MM/DD/YYYY).
        invoice_amount: Total amount of the invoice (e.g. "$150.00" or "150.00").
        provider_name: Name of the veterinary provider/clinic.
        claim_description: Brief description of the treatment or reason for the claim.
        invoice_file_path: Path to the invoice file to upload (required by the portal).
        medical_records_path: Optional path to a medical records file to upload.
    """
    print("Tool call: prepare_claim_to_submit")
    return await prepare_claim_result(
        _manager(ctx),
        pet_name,
        invoice_date,
        invoice_amount,
        provider_name,
        claim_description,
        invoice_file_path,
        medical_records_path,
    )


@function_tool
async def submit_claim(ctx: RunContextWrapper[Any], confirmation_token: str) -> str:
    """ACTUALLY submit the claim prepared by prepare_claim_to_submit.

    Only call this after the user has reviewed the prepared claim details and explicitly confirmed.

    Args:
        confirmation_token: The token from the prepare_claim_to_submit confirmation message.
    """
    print("Tool call: submit_claim")
    return await submit_claim_result(_manager(ctx), confirmation_token)


@function_tool
async def get_claims(ctx: RunContextWrapper[Any]) -> str:
    """List all Fetch Pet claims: active/pending ones first, then historical/closed ones.

    Active claims have ids like "claim-0-buddy-dental-cleaning" that are only valid until the next listing;
    historical claims use the portal's numeric claim number.
    """
    print("Tool call: get_claims")
    return await claims_result(_manager(ctx))


@function_tool
async def get_active_claims(ctx: RunContextWrapper[Any]) -> str:
    """List only active/pending Fetch Pet claims, in page order.

    Ids look like "claim-0-buddy-dental-cleaning" and are only valid until the next listing.
    """
    print("Tool call: get_active_claims")
    return await claims_result(_manager(ctx), "active")


@function_tool
async def get_historical_claims(ctx: RunContextWrapper[Any]) -> str:
    """List only historical/closed Fetch Pet claims, identified by the portal's numeric claim number."""
    print("Tool call: get_historical_claims")
    return await claims_result(_manager(ctx), "historical")


@function_tool
async def get_claim_details(ctx: RunContextWrapper[Any], claim_id: str) -> str:
    """Get details for one claim (pet, date, amount, status, policy number) and download its EOB and invoice.

    Args:
        claim_id: A claim id from get_claims.

    Returns:
        Claim details as JSON. A non-null "error" means the claim could not be found.
    """
    print("Tool call: get_claim_details")
    return await claim_details_result(_manager(ctx), claim_id)
