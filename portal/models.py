"""Data model for the Fetch Pet claims portal."""

from dataclasses import asdict, dataclass, field
from typing import Any

HISTORICAL_STATUS = "closed"


def is_historical_claim_id(claim_id: str) -> bool:
    """All-digit ids are the portal's own claim numbers (historical); anything else is a synthesized active id."""
    return claim_id.isascii() and claim_id.isdigit()


@dataclass
class FetchPetConfig:
    """Runtime settings for one portal client."""

    username: str
    password: str
    headless: bool = True
    timeout_ms: int = 30_000
    download_dir: str = "/tmp/fetchpet-downloads"
    base_url: str = "https://my.fetchpet.com"


@dataclass(frozen=True)
class ClaimSubmissionData:
    """What would be submitted, as filled into the portal form. Read-only once built."""

    pet_name: str
    invoice_date: str
    invoice_amount: str
    provider_name: str
    claim_description: str
    invoice_file: str | None = None
    medical_records_file: str | None = None
    validation_errors: tuple[str, ...] = ()
    confirmation_message: str = ""

    @property
    def is_ready_to_submit(self) -> bool:
        return not self.validation_errors

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["validation_errors"] = list(self.validation_errors)
        data["is_ready_to_submit"] = self.is_ready_to_submit
        return data


@dataclass(frozen=True)
class PendingClaim:
    """The single prepared-but-unconfirmed claim held by a client."""

    data: ClaimSubmissionData
    token: str
    created_at: float  # seconds, from the submitter's clock


@dataclass
class ClaimSubmissionResult:
    success: bool
    message: str
    claim_id: str | None = None
    confirmation_number: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Claim:
    claim_id: str
    pet_name: str
    claim_date: str
    claim_amount: str
    status: str
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ClaimDetails(Claim):
    """A claim as shown in its detail dialog, plus any downloaded documents.

    A populated ``error`` is a soft failure (for example, no matching claim was found).
    """

    policy_number: str | None = None
    eob_summary: str | None = None
    invoice_summary: str | None = None
    local_eob_path: str | None = None
    local_invoice_path: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class ActiveClaimRow:
    """A claim card from the active view. The id is synthesized per listing pass."""

    index: int
    pet_name: str
    status: str
    amount: str
    description: str | None = None

    @property
    def claim_id(self) -> str:
        raw = f"claim-{self.index}-{self.pet_name}-{self.description or 'unknown'}"
        return slugify(raw)

    def to_claim(self) -> Claim:
        # The date is only visible in the detail dialog.
        return Claim(
            claim_id=self.claim_id,
            pet_name=self.pet_name,
            claim_date="",
            claim_amount=self.amount,
            status=self.status,
            description=self.description,
        )


@dataclass(frozen=True)
class HistoricalClaimRow:
    """A row reconstructed from the history view's claim-number/date/price nodes."""

    claim_number: str
    pet_name: str
    claim_date: str
    amount: str
    status: str = HISTORICAL_STATUS

    def to_claim(self) -> Claim:
        return Claim(
            claim_id=self.claim_number.strip().lstrip("#").strip(),
            pet_name=self.pet_name,
            claim_date=self.claim_date,
            claim_amount=self.amount,
            status=self.status,
        )


ClaimRow = ActiveClaimRow | HistoricalClaimRow


def slugify(value: str) -> str:
    """Collapse whitespace runs to single dashes and lowercase."""
    return "-".join(value.split()).lower()
