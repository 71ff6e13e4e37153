"""Fetch Pet client: the portal operations exposed to the tool layer."""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from playwright.async_api import Page

from .claims import ClaimsExtractor
from .downloader import DocumentDownloader
from .form_filler import ClaimForm, ClaimFormFiller, build_submission_data
from .models import Claim, ClaimDetails, ClaimSubmissionData, ClaimSubmissionResult, FetchPetConfig
from .session import PortalSession
from .submission import ClaimSubmitter, new_confirmation_token

logger = logging.getLogger(__name__)


class FetchPetClient:
    """One logged-in portal session plus its pending claim.

    Every operation drives the same browser page, so calls must not overlap.
    """

    def __init__(
        self,
        config: FetchPetConfig,
        page: Page | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        Path(config.download_dir).mkdir(parents=True, exist_ok=True)
        self.session = PortalSession(config, page=page)
        self.submitter = ClaimSubmitter(clock=clock)
        self.downloader = DocumentDownloader(config.download_dir)

    async def initialize(self) -> None:
        await self.session.initialize()

    async def close(self) -> None:
        await self.session.close()

    async def get_current_url(self) -> str:
        return await self.session.get_current_url()

    def get_config(self) -> FetchPetConfig:
        return self.config

    def _extractor(self) -> ClaimsExtractor:
        return ClaimsExtractor(self.session.page, self.config.base_url, self.downloader)

    async def prepare_claim_to_submit(
        self,
        pet_name: str,
        invoice_date: str,
        invoice_amount: str,
        provider_name: str,
        claim_description: str,
        invoice_file_path: str | None = None,
        medical_records_path: str | None = None,
    ) -> ClaimSubmissionData:
        """Fill the claim form without submitting it.

        When the form is valid, the returned confirmation message carries a
        fresh token and the claim becomes the pending one for submit_claim.
        """
        form = ClaimForm(
            pet_name=pet_name,
            invoice_date=invoice_date,
            invoice_amount=invoice_amount,
            provider_name=provider_name,
            claim_description=claim_description,
            invoice_file_path=invoice_file_path,
            medical_records_path=medical_records_path,
        )
        errors = await ClaimFormFiller(self.session.page, self.config.base_url).fill(form)
        token = new_confirmation_token()
        data = build_submission_data(form, errors, token)
        if data.is_ready_to_submit:
            self.submitter.prepare(data, token)
        else:
            logger.info("Claim for %s not ready: %s", pet_name, "; ".join(errors))
        return data

    async def submit_claim(self, confirmation_token: str) -> ClaimSubmissionResult:
        return await self.submitter.submit(self.session.page, confirmation_token)

    async def get_active_claims(self) -> list[Claim]:
        return await self._extractor().get_active_claims()

    async def get_historical_claims(self) -> list[Claim]:
        return await self._extractor().get_historical_claims()

    async def get_claims(self) -> list[Claim]:
        return await self._extractor().get_claims()

    async def get_claim_details(self, claim_id: str) -> ClaimDetails:
        return await self._extractor().get_claim_details(claim_id.strip())
