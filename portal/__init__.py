"""Fetch Pet portal automation: login, claim form filling, two-phase submission and claim scraping."""

from .client import FetchPetClient
from .errors import BrowserNotInitializedError, FetchPetError, LoginError
from .lifecycle import ClientManager
from .models import (
    Claim,
    ClaimDetails,
    ClaimSubmissionData,
    ClaimSubmissionResult,
    FetchPetConfig,
    is_historical_claim_id,
)

__all__ = [
    "FetchPetClient",
    "ClientManager",
    "FetchPetConfig",
    "Claim",
    "ClaimDetails",
    "ClaimSubmissionData",
    "ClaimSubmissionResult",
    "FetchPetError",
    "BrowserNotInitializedError",
    "LoginError",
    "is_historical_claim_id",
]
