"""Reads the active and history claim views, and claim detail dialogs."""

import logging
import re
from typing import Any

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from . import selectors as sel
from .downloader import DocumentDownloader
from .models import ActiveClaimRow, Claim, ClaimDetails, HistoricalClaimRow, is_historical_claim_id

logger = logging.getLogger(__name__)

DEFAULT_ACTIVE_STATUS = "pending"
UNKNOWN_PET = "Unknown Pet"

# Regex fallbacks over the dialog's full text, for markup the selectors miss.
_DETAIL_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "claim_id": (re.compile(r"#(\d+)"),),
    "pet_name": (re.compile(r"(\w+)'s claim", re.I),),
    "status": (re.compile(r"Status:?\s*(\w+)", re.I),),
    "claim_date": (
        re.compile(r"Date of visit\s*(\d{1,2}/\d{1,2}/\d{4})", re.I),
        re.compile(r"(\d{1,2}/\d{1,2}/\d{4})"),
    ),
    "claim_amount": (re.compile(r"Payout\s*(\$?[\d,]+(?:\.\d{2})?)", re.I),),
    "policy_number": (re.compile(r"Policy\s*(?:number|no\.?|#)?:?\s*#?([A-Z0-9-]*\d[A-Z0-9-]*)", re.I),),
    "description": (re.compile(r"Reason for visit:?\s*([^\n]+)", re.I),),
}

_DETAIL_SELECTORS = {
    "claim_id": sel.DETAIL_CLAIM_ID,
    "pet_name": sel.DETAIL_PET_NAME,
    "status": sel.DETAIL_STATUS,
    "claim_date": sel.DETAIL_DATE,
    "claim_amount": sel.DETAIL_AMOUNT,
    "policy_number": sel.DETAIL_POLICY_NUMBER,
    "description": sel.DETAIL_REASON,
}


def active_search_terms(claim_id: str) -> tuple[int | None, str]:
    """Split a synthesized active id into its list index and the text to look for on the card.

    ``claim-3-nova-dental-cleaning`` -> ``(3, "nova dental cleaning")``. The
    ``unknown`` placeholder for a missing description is dropped.
    """
    match = re.match(r"^claim-(\d+)-(.*)$", claim_id)
    index = int(match.group(1)) if match else None
    rest = match.group(2) if match else claim_id
    rest = re.sub(r"-unknown$", "", rest)
    return index, rest.replace("-", " ").strip().lower()


def pair_history_nodes(number_dates: list[str], prices: list[str]) -> list[tuple[str, str, str]]:
    """Rebuild (claim number, date, amount) rows from the history view's flat node lists.

    Claim numbers and dates alternate in ``number_dates``; row ``i`` takes
    ``number_dates[2i]``, ``number_dates[2i + 1]`` and ``prices[i]``.
    """
    rows = []
    for position in range(0, len(number_dates) - 1, 2):
        row_index = position // 2
        amount = prices[row_index] if row_index < len(prices) else ""
        rows.append((number_dates[position], number_dates[position + 1], amount))
    return rows


class ClaimsExtractor:
    """Scrapes claim lists and details from the shared page. Views are visited one after another."""

    def __init__(self, page: Page, base_url: str, downloader: DocumentDownloader) -> None:
        self.page = page
        self.base_url = base_url.rstrip("/")
        self.downloader = downloader

    async def _open(self, path: str) -> None:
        await self.page.goto(f"{self.base_url}{path}", wait_until="domcontentloaded")
        try:
            await self.page.wait_for_load_state("networkidle", timeout=10_000)
        except PlaywrightTimeoutError:
            logger.debug("%s did not reach network idle; continuing", path)

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    async def get_claims(self) -> list[Claim]:
        """Active claims first, then historical, each in page order."""
        active = await self.get_active_claims()
        historical = await self.get_historical_claims()
        return active + historical

    async def get_active_claims(self) -> list[Claim]:
        await self._open("/claims/active")
        await self._ensure_active_tab()
        return [row.to_claim() for row in await self.read_active_rows()]

    async def _ensure_active_tab(self) -> None:
        tab = await sel.first_match(self.page, sel.ACTIVE_TAB)
        if tab is None:
            return
        is_active = await tab.evaluate(
            "(el) => el.classList.contains('active') || el.getAttribute('aria-current') === 'page'"
        )
        if not is_active:
            await tab.click()
            await self.page.wait_for_timeout(1_000)

    async def read_active_rows(self) -> list[ActiveClaimRow]:
        rows = []
        for index, card in enumerate(await self.page.query_selector_all(sel.ACTIVE_CLAIM_CARD)):
            pet_name = await sel.text_of(await sel.first_match(card, sel.ACTIVE_PET_NAME)) or UNKNOWN_PET
            status = (await sel.text_of(await sel.first_match(card, sel.ACTIVE_STATUS))).lower()
            amount = await sel.text_of(await sel.first_match(card, sel.ACTIVE_AMOUNT))
            description = await sel.text_of(await sel.first_match(card, sel.ACTIVE_REASON))
            rows.append(
                ActiveClaimRow(
                    index=index,
                    pet_name=pet_name,
                    status=status or DEFAULT_ACTIVE_STATUS,
                    amount=amount,
                    description=description or None,
                )
            )
        return rows

    async def get_historical_claims(self) -> list[Claim]:
        await self._open("/claims/closed")
        await self._expand_history()
        return [row.to_claim() for row in await self.read_historical_rows()]

    async def _expand_history(self) -> None:
        # Each pet only shows its three most recent claims until expanded
        for selector in sel.HISTORY_VIEW_ALL:
            for expander in await self.page.query_selector_all(selector):
                await expander.click()
                await self.page.wait_for_timeout(500)

    async def read_historical_rows(self) -> list[HistoricalClaimRow]:
        rows = []
        for container in await sel.first_matches(self.page, sel.HISTORY_PET_CONTAINER):
            pet_name = await sel.text_of(await sel.first_match(container, sel.HISTORY_PET_NAME)) or UNKNOWN_PET
            number_dates = [await sel.text_of(node) for node in await sel.first_matches(container, sel.HISTORY_NUMBER_DATE)]
            prices = [await sel.text_of(node) for node in await sel.first_matches(container, sel.HISTORY_PRICE)]
            for claim_number, claim_date, amount in pair_history_nodes(number_dates, prices):
                rows.append(
                    HistoricalClaimRow(
                        claim_number=claim_number,
                        pet_name=pet_name,
                        claim_date=claim_date,
                        amount=amount,
                    )
                )
        return rows

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------

    async def get_claim_details(self, claim_id: str) -> ClaimDetails:
        """Open the claim's detail dialog and read it. A missing claim is reported in ``error``."""
        if is_historical_claim_id(claim_id):
            opened = await self._open_historical_details(claim_id)
        else:
            opened = await self._open_active_details(claim_id)
        if not opened:
            return ClaimDetails(
                claim_id=claim_id,
                pet_name="",
                claim_date="",
                claim_amount="",
                status="unknown",
                error=f"Could not find claim {claim_id}. Call get_claims for current claim ids.",
            )
        await self.page.wait_for_timeout(2_000)

        dialog = await sel.first_match(self.page, sel.DETAIL_DIALOG) or await self.page.query_selector("body")
        details = await self.read_detail_dialog(dialog, claim_id)
        await self._download_documents(dialog, details)
        await self._close_dialog(dialog)
        return details

    async def _open_historical_details(self, claim_id: str) -> bool:
        await self._open("/claims/closed")
        await self._expand_history()
        wanted = f"#{claim_id}"
        for row in await sel.first_matches(self.page, sel.HISTORY_ROW):
            number = await sel.text_of(await sel.first_match(row, sel.HISTORY_ROW_NUMBER))
            if number != wanted:
                continue
            link = await sel.first_match(row, sel.HISTORY_DETAILS_LINK)
            if link is None:
                logger.warning("Historical claim %s has no details control", claim_id)
                return False
            await link.click()
            return True
        return False

    async def _open_active_details(self, claim_id: str) -> bool:
        await self._open("/claims/active")
        await self._ensure_active_tab()
        index, terms = active_search_terms(claim_id)
        if not terms:
            return False

        # Pet name and reason sit in different parts of the card, so match word by word
        words = terms.split()
        cards = await self.page.query_selector_all(sel.ACTIVE_CLAIM_CARD)
        matches = []
        for position, card in enumerate(cards):
            text = ((await card.text_content()) or "").lower()
            if all(word in text for word in words):
                matches.append((position, card))
        if not matches:
            return False

        # Several cards can share pet and reason; prefer the listed position
        card = next((card for position, card in matches if position == index), matches[0][1])
        link = await sel.first_match(card, sel.ACTIVE_DETAILS_LINK)
        if link is None:
            logger.warning("Active claim %s has no summary link", claim_id)
            return False
        await link.click()
        return True

    async def read_detail_dialog(self, dialog: Any, requested_id: str) -> ClaimDetails:
        text = (await dialog.inner_text()) or ""
        values: dict[str, str | None] = {}
        for field_name, selectors in _DETAIL_SELECTORS.items():
            value = await sel.text_of(await sel.first_match(dialog, selectors))
            if not value:
                value = _search(_DETAIL_PATTERNS[field_name], text)
            values[field_name] = value or None

        claim_id = (values["claim_id"] or "").lstrip("#").strip() or requested_id
        amount = values["claim_amount"] or ""
        if amount and not amount.startswith("$"):
            amount = f"${amount}"
        return ClaimDetails(
            claim_id=claim_id,
            pet_name=values["pet_name"] or UNKNOWN_PET,
            claim_date=values["claim_date"] or "",
            claim_amount=amount,
            status=(values["status"] or "unknown").lower(),
            description=values["description"],
            policy_number=values["policy_number"],
        )

    async def _download_documents(self, dialog: Any, details: ClaimDetails) -> None:
        eob = await sel.first_match(dialog, sel.EOB_DOCUMENT)
        if eob is not None:
            details.local_eob_path, details.eob_summary = await self.downloader.download(
                self.page, eob, details.claim_id, "eob", "Explanation of Benefits"
            )
        invoice = await sel.first_match(dialog, sel.INVOICE_DOCUMENT)
        if invoice is not None:
            details.local_invoice_path, details.invoice_summary = await self.downloader.download(
                self.page, invoice, details.claim_id, "invoice", "Invoice"
            )

    async def _close_dialog(self, dialog: Any) -> None:
        close = await sel.first_match(dialog, sel.DETAIL_CLOSE)
        if close is not None:
            await close.click()
            await self.page.wait_for_timeout(500)


def _search(patterns: tuple[re.Pattern[str], ...], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None
