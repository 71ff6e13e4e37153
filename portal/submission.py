"""Two-phase claim submission: prepare stores a pending claim behind a token, submit clicks through."""

import logging
import re
import secrets
import time
from collections.abc import Callable

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from . import selectors as sel
from .models import ClaimSubmissionData, ClaimSubmissionResult, PendingClaim

logger = logging.getLogger(__name__)

PENDING_CLAIM_TTL_MS = 120_000
_CONFIRM_DIALOG_TIMEOUT_MS = 5_000

INVALID_TOKEN_MESSAGE = (
    "Invalid or expired confirmation token. Please call prepare_claim_to_submit first to get a new token."
)
EXPIRED_TOKEN_MESSAGE = (
    "Confirmation token has expired (older than 2 minutes); the claim form may no longer be open. "
    "Please call prepare_claim_to_submit again."
)
NOT_READY_MESSAGE = "No valid claim prepared for submission. Please call prepare_claim_to_submit first."
UNCONFIRMED_MESSAGE = "Could not confirm claim submission. Please check your claims list."

_CONFIRMATION_NUMBER = re.compile(r"(?:claim|confirmation)[\s#:]*(?:number|no\.?|id)?[\s#:]*([A-Z0-9-]*\d[A-Z0-9-]*)", re.I)


def new_confirmation_token() -> str:
    """128 random bits, hex encoded."""
    return secrets.token_hex(16)


class ClaimSubmitter:
    """Holds at most one pending claim and submits it when given the matching token.

    Expiry is checked lazily at submit time.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self.pending: PendingClaim | None = None

    def prepare(self, data: ClaimSubmissionData, token: str) -> None:
        """Store a ready claim as the pending one, replacing any previous pending claim."""
        if not data.is_ready_to_submit:
            return
        if self.pending is not None:
            logger.info("Replacing previously prepared claim for %s", self.pending.data.pet_name)
        self.pending = PendingClaim(data=data, token=token, created_at=self._clock())

    def check_token(self, token: str) -> ClaimSubmissionResult | None:
        """Return a rejection for a bad, expired or unusable token, or None if submission may proceed."""
        pending = self.pending
        if pending is None:
            return ClaimSubmissionResult(success=False, message=INVALID_TOKEN_MESSAGE)
        if not secrets.compare_digest(pending.token.encode(), token.encode()):
            self.pending = None
            return ClaimSubmissionResult(success=False, message=INVALID_TOKEN_MESSAGE)
        if (self._clock() - pending.created_at) * 1000 > PENDING_CLAIM_TTL_MS:
            self.pending = None
            return ClaimSubmissionResult(success=False, message=EXPIRED_TOKEN_MESSAGE)
        if not pending.data.is_ready_to_submit:
            return ClaimSubmissionResult(success=False, message=NOT_READY_MESSAGE)
        return None

    async def submit(self, page: Page, token: str) -> ClaimSubmissionResult:
        """Submit the pending claim on the (still open) form if ``token`` matches."""
        rejection = self.check_token(token)
        if rejection is not None:
            return rejection

        submit_button = await sel.first_match(page, sel.SUBMIT_BUTTON)
        if submit_button is None:
            return ClaimSubmissionResult(success=False, message="Could not find submit button on the page")
        form_url = page.url
        await submit_button.click()
        await self._confirm_if_asked(page)

        try:
            await page.wait_for_load_state("networkidle", timeout=10_000)
        except PlaywrightTimeoutError:
            logger.debug("Page did not reach network idle after submit; continuing")
        await page.wait_for_timeout(2_000)

        success_element = await sel.first_match(page, sel.SUBMIT_SUCCESS)
        if success_element is not None:
            success_text = await sel.text_of(success_element)
            match = _CONFIRMATION_NUMBER.search(success_text)
            number = match.group(1) if match else None
            self.pending = None
            logger.info("Claim submitted (confirmation %s)", number or "unknown")
            return ClaimSubmissionResult(
                success=True,
                message=success_text or "Claim submitted successfully",
                claim_id=number,
                confirmation_number=number,
            )

        error_element = await sel.first_match(page, sel.SUBMIT_ERROR)
        if error_element is not None:
            error_text = await sel.text_of(error_element)
            if error_text:
                return ClaimSubmissionResult(success=False, message=f"Submission failed: {error_text}")

        # The form is a modal, so only a navigation away from it counts as a redirect
        current_url = page.url.lower()
        navigated = current_url != form_url.lower()
        if navigated and "claims" in current_url and "new" not in current_url and "submit" not in current_url:
            self.pending = None
            logger.info("Claim submitted (redirected to %s)", page.url)
            return ClaimSubmissionResult(
                success=True,
                message="Claim appears to have been submitted successfully (redirected to claims page)",
            )

        return ClaimSubmissionResult(success=False, message=UNCONFIRMED_MESSAGE)

    async def _confirm_if_asked(self, page: Page) -> None:
        # e.g. "Medical records required" with a "Submit anyway" escape hatch
        if await sel.wait_for_first(page, sel.SUBMIT_ANYWAY_BUTTON, _CONFIRM_DIALOG_TIMEOUT_MS) is None:
            return
        button = await sel.first_match(page, sel.SUBMIT_ANYWAY_BUTTON)
        if button is not None:
            logger.info("Confirmation dialog shown after submit; clicking through")
            await button.click()
