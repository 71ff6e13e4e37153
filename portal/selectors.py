"""Selector chains for the Fetch Pet portal markup.

Each logical field maps to an ordered tuple of selectors. Lookups try them in
order and use the first one that matches, so markup changes only touch this
module.
"""

from typing import Any, Sequence

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

EMAIL_INPUT = (
    'input[type="email"]',
    'input[name="email"]',
    "#email",
    'input[placeholder*="email" i]',
    'input[autocomplete="email"]',
    'input[autocomplete="username"]',
)
PASSWORD_INPUT = (
    'input[type="password"]',
    'input[name="password"]',
    "#password",
    'input[placeholder*="password" i]',
)
SIGN_IN_BUTTON = (
    'button[type="submit"]',
    'button:has-text("Sign In")',
    'button:has-text("Log In")',
    'button:has-text("Login")',
    'button:has-text("Sign")',
    'button:has-text("Log")',
)
LOGIN_ERROR = (
    ".login-error",
    ".error-message",
    '[role="alert"]:has-text("password")',
    '[role="alert"]:has-text("email")',
)
POST_LOGIN_NAV = 'a[href="/claims/active"], a[href*="/claims"], nav a[href*="/pets"]'
LOGIN_URL_MARKERS = ("login", "signin")

# ---------------------------------------------------------------------------
# Claim submission form
# ---------------------------------------------------------------------------

OPEN_CLAIM_FORM_BUTTON = (
    'button.filled-btn:has-text("Submit a claim")',
    'button:has-text("Submit a claim")',
)
VET_INPUT = (".rbt-input-main", 'input[placeholder="Search vets"]')
VET_OPTION = ('.rbt-menu [role="option"]', '[role="listbox"] [role="option"]')
VET_SELECTED = (".rbt-token", ".selected-vet", ".rbt-input-hint")
DIAGNOSIS_INPUT = (".MuiAutocomplete-input", 'input[placeholder="Search diagnoses"]')
DIAGNOSIS_OPTION = ('.MuiAutocomplete-listbox [role="option"]', '[role="listbox"] [role="option"]')
DETAILS_TEXTAREA = ('textarea[placeholder="Describe the visit"]', "textarea")
FILE_INPUT = 'input[type="file"]'

INVOICE_DATE_INPUT = (
    'input[placeholder*="invoice date" i]',
    'input[name*="date" i]',
    ".react-datepicker__input-container input",
    'input[placeholder*="MM/DD/YYYY"]',
)
INVOICE_AMOUNT_INPUT = (
    'input[name*="amount" i]',
    'input[placeholder*="amount" i]',
    'input[inputmode="decimal"]',
)
CALENDAR_HEADER = (
    ".react-datepicker__current-month",
    ".MuiPickersCalendarHeader-label",
    '[role="dialog"] [aria-live="polite"]',
)
CALENDAR_PREVIOUS = (
    "button.react-datepicker__navigation--previous",
    'button[aria-label*="previous month" i]',
    'button[aria-label*="previous" i]',
)
CALENDAR_NEXT = (
    "button.react-datepicker__navigation--next",
    'button[aria-label*="next month" i]',
    'button[aria-label*="next" i]',
)
# Formatted with the target day of month.
CALENDAR_DAY = (
    ".react-datepicker__day--{day:03d}:not(.react-datepicker__day--outside-month)",
    'button[role="gridcell"]:text-is("{day}")',
    '[role="gridcell"]:text-is("{day}")',
)
CONTINUE_BUTTON = ('button:has-text("Continue")', 'button:has-text("Next")')
FIELD_ERRORS = ".invalid-feedback, .form-error, [class*='field-error']"

SUBMIT_BUTTON = (
    'button[type="submit"]:has-text("Submit")',
    'button:has-text("Submit claim")',
    'button:has-text("File Claim")',
    'button[type="submit"]',
)
SUBMIT_ANYWAY_BUTTON = (
    'button:has-text("Submit anyway")',
    'button:has-text("Continue without")',
)
SUBMIT_SUCCESS = (
    ".claim-success",
    '[class*="confirmation"]',
    '[class*="success-message"]',
    '[role="alert"]:has-text("success")',
)
SUBMIT_ERROR = (
    ".error-message",
    ".submission-error",
    '[role="alert"]:has-text("error")',
)

# ---------------------------------------------------------------------------
# Claim lists
# ---------------------------------------------------------------------------

ACTIVE_TAB = ('a[href="/claims/active"]', 'a:has-text("Active")')
ACTIVE_CLAIM_CARD = ".claim-card-data-list"
ACTIVE_PET_NAME = (".pet-name", ".claims-title")
ACTIVE_STATUS = (".status-text.status", ".status-text")
ACTIVE_AMOUNT = (".claim-invoice-details.fw-700", ".claim-amount")
ACTIVE_REASON = (".treated-for", ".disease", ".claim-id.treated-for")
ACTIVE_DETAILS_LINK = (".details-link", 'a:has-text("See summary")', 'button:has-text("See summary")')

HISTORY_VIEW_ALL = ('button:has-text("View all")', 'a:has-text("View all")')
HISTORY_PET_CONTAINER = (".claims-history-pet", ".pet-claims-container")
HISTORY_PET_NAME = (".pet-name", "h3", "h2")
# Flat sequence: claim number, date, claim number, date, ...
HISTORY_NUMBER_DATE = (".claim-number-date", ".claim-id-date")
HISTORY_PRICE = (".claim-price", ".price")
HISTORY_ROW = (".claims-history-row", ".history-claim-row")
HISTORY_ROW_NUMBER = (".claim-number", ".claim-number-date")
HISTORY_DETAILS_LINK = (".details-link", 'button:has-text("Details")', 'a:has-text("Details")')

# ---------------------------------------------------------------------------
# Claim detail dialog
# ---------------------------------------------------------------------------

DETAIL_DIALOG = (".claim-details-popup-container", ".claim-details-popup", '[role="dialog"]')
DETAIL_CLAIM_ID = (".claim-number", ".claim-id")
DETAIL_PET_NAME = (".pet-name", ".claim-pet-name")
DETAIL_STATUS = (".status-text", ".claim-status")
DETAIL_DATE = (".date-of-visit", ".visit-date")
DETAIL_AMOUNT = (".payout-amount", ".claim-payout")
DETAIL_POLICY_NUMBER = (".policy-number", ".policy-id")
DETAIL_REASON = (".treated-for", ".reason-for-visit")
DETAIL_CLOSE = ('img[alt="img"]', '[class*="close"]', 'button[aria-label="Close"]')

EOB_DOCUMENT = ('div.document-item:has-text("Explanation of Benefits")', 'div:has-text("Explanation of Benefits")')
INVOICE_DOCUMENT = (
    'div.document-item:has-text("Invoice"):not(:has-text("Explanation"))',
    'div:has-text("Invoice"):not(:has-text("Explanation"))',
)


def chain(selectors: Sequence[str], **values: Any) -> tuple[str, ...]:
    """Fill placeholders (e.g. ``{day}``) in every selector of a chain."""
    return tuple(selector.format(**values) for selector in selectors)


async def first_match(scope: Any, selectors: Sequence[str]) -> Any | None:
    """Return the first element matched by any selector, trying them in order.

    ``scope`` is anything with ``query_selector``: a page, a popup, or an element handle.
    """
    for selector in selectors:
        element = await scope.query_selector(selector)
        if element is not None:
            return element
    return None


async def wait_for_first(page: Any, selectors: Sequence[str], timeout: float) -> Any | None:
    """Wait up to ``timeout`` ms for any selector in the chain to become visible; None if none does."""
    try:
        return await page.wait_for_selector(", ".join(selectors), state="visible", timeout=timeout)
    except PlaywrightTimeoutError:
        return None


async def first_matches(scope: Any, selectors: Sequence[str]) -> list[Any]:
    """Return all elements for the first selector that matches anything."""
    for selector in selectors:
        elements = await scope.query_selector_all(selector)
        if elements:
            return elements
    return []


async def text_of(element: Any | None) -> str:
    if element is None:
        return ""
    return ((await element.text_content()) or "").strip()
