"""Fills the multi-step "Submit a claim" form without submitting it.

Recoverable form problems never raise; they are collected as validation
errors on the returned ClaimSubmissionData.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from . import selectors as sel
from .models import ClaimSubmissionData

logger = logging.getLogger(__name__)

INVOICE_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")
INVOICE_DATE_FORMAT_NAMES = "YYYY-MM-DD or MM/DD/YYYY"
# Covers any invoice date within two years of the month the calendar opens on
MAX_CALENDAR_STEPS = 24

_INVOICE_DIALOG_TIMEOUT_MS = 3_000
_TYPEAHEAD_DELAY_MS = 1_000
_SETTLE_DELAY_MS = 1_000


def parse_invoice_date(value: str) -> date | None:
    """Parse ``YYYY-MM-DD`` or ``MM/DD/YYYY``; None if neither matches."""
    value = value.strip()
    for fmt in INVOICE_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_month_header(text: str) -> tuple[int, int] | None:
    """Parse a calendar header like "March 2025" or "Mar 2025" into (year, month)."""
    text = " ".join(text.split())
    for fmt in ("%B %Y", "%b %Y"):
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.year, parsed.month
    return None


def month_ordinal(year: int, month: int) -> int:
    return year * 12 + month


def normalize_amount(value: str) -> str:
    """Strip currency symbols, whitespace and thousands separators: "$1,234.50" -> "1234.50"."""
    return re.sub(r"[^\d.]", "", value)


@dataclass
class ClaimForm:
    """The values to type into the claim form."""

    pet_name: str
    invoice_date: str
    invoice_amount: str
    provider_name: str
    claim_description: str
    invoice_file_path: str | None = None
    medical_records_path: str | None = None


class ClaimFormFiller:
    """Drives the portal's claim submission modal on the shared page."""

    def __init__(self, page: Page, base_url: str) -> None:
        self.page = page
        self.base_url = base_url.rstrip("/")

    async def fill(self, form: ClaimForm) -> list[str]:
        """Fill every step of the form and return the validation errors found along the way."""
        page = self.page
        errors: list[str] = []

        await page.goto(f"{self.base_url}/claims/active", wait_until="domcontentloaded")
        await self._settle()

        open_button = await sel.first_match(page, sel.OPEN_CLAIM_FORM_BUTTON)
        if open_button is None:
            # Nothing else can be filled without the modal
            return ['Could not find "Submit a claim" button']
        await open_button.click()
        await page.wait_for_timeout(2_000)

        # Checked whether or not the portal later asks for the date
        invoice_date = parse_invoice_date(form.invoice_date)
        if invoice_date is None:
            errors.append(f'Invalid invoice date "{form.invoice_date}". Use {INVOICE_DATE_FORMAT_NAMES}.')

        await self._select_vet(form.provider_name, errors)
        await self._select_diagnosis(form.claim_description)
        await self._fill_details(form)
        await self._upload_invoice(form, invoice_date, errors)
        await self._upload_medical_records(form.medical_records_path)

        await page.wait_for_timeout(_SETTLE_DELAY_MS)
        for message in await self._field_errors():
            if message not in errors:
                errors.append(message)
        return errors

    async def _settle(self) -> None:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=10_000)
        except PlaywrightTimeoutError:
            logger.debug("Page did not reach network idle; continuing")

    async def _select_vet(self, provider_name: str, errors: list[str]) -> None:
        page = self.page
        vet_input = await sel.first_match(page, sel.VET_INPUT)
        if vet_input is None:
            # A vet already chosen on the account is fine without a fresh input
            if await sel.first_match(page, sel.VET_SELECTED) is None:
                errors.append("Could not find vet selection field")
            return
        await vet_input.click(click_count=3)
        await vet_input.fill(provider_name)
        await page.wait_for_timeout(_TYPEAHEAD_DELAY_MS)
        option = await sel.first_match(page, sel.VET_OPTION)
        if option is not None:
            await option.click()
            await page.wait_for_timeout(500)

    async def _select_diagnosis(self, description: str) -> None:
        # Optional in some form variants, so failures are not validation errors
        page = self.page
        diagnosis_input = await sel.first_match(page, sel.DIAGNOSIS_INPUT)
        if diagnosis_input is None:
            logger.info("No diagnosis field on the claim form")
            return
        await diagnosis_input.click()
        await diagnosis_input.fill(description)
        await page.wait_for_timeout(_TYPEAHEAD_DELAY_MS)
        option = await sel.first_match(page, sel.DIAGNOSIS_OPTION)
        if option is not None:
            await option.click()
            await page.wait_for_timeout(500)
        else:
            logger.info("No diagnosis suggestion for %r", description)

    async def _fill_details(self, form: ClaimForm) -> None:
        textarea = await sel.first_match(self.page, sel.DETAILS_TEXTAREA)
        if textarea is not None:
            await textarea.fill(f"Date: {form.invoice_date}, Amount: {form.invoice_amount}. {form.claim_description}")

    async def _upload_invoice(self, form: ClaimForm, invoice_date: date | None, errors: list[str]) -> None:
        page = self.page
        if not form.invoice_file_path:
            errors.append("Invoice file is required for claim submission")
            return
        upload = await page.query_selector(sel.FILE_INPUT)
        if upload is None:
            errors.append("Could not find invoice file upload field")
            return
        await upload.set_input_files(form.invoice_file_path)
        await page.wait_for_timeout(_TYPEAHEAD_DELAY_MS)

        # The portal may ask for the invoice date and amount in a dialog after upload
        if await sel.wait_for_first(page, sel.INVOICE_DATE_INPUT, _INVOICE_DIALOG_TIMEOUT_MS) is None:
            logger.info("No invoice details dialog after upload")
            return
        await self._fill_invoice_details(form, invoice_date, errors)

    async def _fill_invoice_details(self, form: ClaimForm, invoice_date: date | None, errors: list[str]) -> None:
        page = self.page

        if invoice_date is not None:
            error = await self._pick_date(invoice_date)
            if error:
                errors.append(error)

        amount_input = await sel.first_match(page, sel.INVOICE_AMOUNT_INPUT)
        if amount_input is None:
            errors.append("Could not find invoice amount field")
        else:
            await amount_input.fill(normalize_amount(form.invoice_amount))

        continue_button = await sel.first_match(page, sel.CONTINUE_BUTTON)
        if continue_button is None:
            errors.append("Could not find Continue button on the invoice details dialog")
            return
        await continue_button.click()
        await page.wait_for_timeout(_SETTLE_DELAY_MS)

    async def _pick_date(self, target: date) -> str | None:
        """Open the date field's calendar and click the target day. Returns an error message on failure."""
        page = self.page
        date_input = await sel.first_match(page, sel.INVOICE_DATE_INPUT)
        if date_input is None:
            return "Could not find invoice date field"
        # Typing is swallowed once the calendar opens, so navigate it instead
        await date_input.click()
        await page.wait_for_timeout(500)

        error = await navigate_calendar(page, target)
        if error:
            return error

        day_cell = await sel.first_match(page, sel.chain(sel.CALENDAR_DAY, day=target.day))
        if day_cell is None:
            return f"Could not find day {target.day} in the invoice date calendar"
        await day_cell.click()
        await page.wait_for_timeout(500)
        return None

    async def _upload_medical_records(self, path: str | None) -> None:
        if not path:
            return
        uploads = await self.page.query_selector_all(sel.FILE_INPUT)
        if len(uploads) > 1:
            await uploads[1].set_input_files(path)
            await self.page.wait_for_timeout(_TYPEAHEAD_DELAY_MS)
        else:
            logger.info("No medical records upload field; skipping %s", path)

    async def _field_errors(self) -> list[str]:
        messages = []
        for element in await self.page.query_selector_all(sel.FIELD_ERRORS):
            if not await element.is_visible():
                continue
            text = await sel.text_of(element)
            if text:
                messages.append(text)
        return messages


async def navigate_calendar(page: Page, target: date) -> str | None:
    """Step an open calendar to the target month. Returns an error message, or None on success."""
    target_ordinal = month_ordinal(target.year, target.month)
    for step in range(MAX_CALENDAR_STEPS + 1):
        header = await sel.first_match(page, sel.CALENDAR_HEADER)
        if header is None:
            return "Could not find the invoice date calendar"
        header_text = await sel.text_of(header)
        shown = parse_month_header(header_text)
        if shown is None:
            return f'Could not read calendar month "{header_text}"'

        distance = target_ordinal - month_ordinal(*shown)
        if distance == 0:
            return None
        if step == MAX_CALENDAR_STEPS:
            break

        control = await sel.first_match(page, sel.CALENDAR_NEXT if distance > 0 else sel.CALENDAR_PREVIOUS)
        if control is None:
            return "Could not find calendar month navigation"
        await control.click()
        await page.wait_for_timeout(200)

    return f"Could not reach {target:%B %Y} in the calendar within {MAX_CALENDAR_STEPS} months"


def build_submission_data(form: ClaimForm, errors: list[str], token: str) -> ClaimSubmissionData:
    """Build the read-only submission summary, with the token in the message only when ready."""
    if errors:
        message = "Cannot submit claim due to validation errors:\n" + "\n".join(errors)
    else:
        lines = [
            "IMPORTANT: This claim has been prepared but NOT submitted yet.",
            "",
            f'To submit this claim, call submit_claim with confirmation_token: "{token}"',
            "",
            "Claim Details:",
            f"- Pet: {form.pet_name}",
            f"- Invoice Date: {form.invoice_date}",
            f"- Amount: {form.invoice_amount}",
            f"- Provider: {form.provider_name}",
            f"- Description: {form.claim_description}",
        ]
        if form.invoice_file_path:
            lines.append(f"- Invoice File: {form.invoice_file_path}")
        if form.medical_records_path:
            lines.append(f"- Medical Records: {form.medical_records_path}")
        lines += ["", "The user MUST explicitly confirm they want to submit this claim before calling submit_claim."]
        message = "\n".join(lines)

    return ClaimSubmissionData(
        pet_name=form.pet_name,
        invoice_date=form.invoice_date,
        invoice_amount=form.invoice_amount,
        provider_name=form.provider_name,
        claim_description=form.claim_description,
        invoice_file=form.invoice_file_path,
        medical_records_file=form.medical_records_path,
        validation_errors=tuple(errors),
        confirmation_message=message,
    )
