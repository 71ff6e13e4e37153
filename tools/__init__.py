"""Pet insurance claims agent tools: Fetch Pet claims, history search, and context."""

from .claim_tools import (
    get_active_claims,
    get_claim_details,
    get_claims,
    get_historical_claims,
    prepare_claim_to_submit,
    submit_claim,
)
from .context_tools import get_today_date
from .history_tools import search_claim_history

__all__ = [
    "prepare_claim_to_submit",
    "submit_claim",
    "get_claims",
    "get_active_claims",
    "get_historical_claims",
    "get_claim_details",
    "search_claim_history",
    "get_today_date",
]
