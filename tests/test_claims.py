import base64
from pathlib import Path

import pytest

from portal import FetchPetClient, FetchPetConfig
from portal import selectors as sel
from portal.claims import active_search_terms, pair_history_nodes
from portal.models import ActiveClaimRow, HistoricalClaimRow, is_historical_claim_id
from tests.fakes import BASE_URL, FakeElement, FakePage, FakePopup


def _client(page: FakePage, tmp_path: Path) -> FetchPetClient:
    config = FetchPetConfig(username="u@example.com", password="pw", download_dir=str(tmp_path / "docs"))
    return FetchPetClient(config, page=page)


def _active_card(pet: str, reason: str | None, status: str = "", amount: str = "$150.00") -> FakeElement:
    children = {
        sel.ACTIVE_PET_NAME[0]: [FakeElement(pet)],
        sel.ACTIVE_AMOUNT[0]: [FakeElement(amount)],
        sel.ACTIVE_DETAILS_LINK[0]: [FakeElement("See summary")],
    }
    if status:
        children[sel.ACTIVE_STATUS[0]] = [FakeElement(status)]
    if reason:
        children[sel.ACTIVE_REASON[0]] = [FakeElement(reason)]
    text = " ".join(part for part in (pet, status, amount, reason) if part)
    return FakeElement(text, children=children)


def _history_container(pet: str, number_dates: list[str], prices: list[str]) -> FakeElement:
    return FakeElement(
        pet,
        children={
            sel.HISTORY_PET_NAME[0]: [FakeElement(pet)],
            sel.HISTORY_NUMBER_DATE[0]: [FakeElement(text) for text in number_dates],
            sel.HISTORY_PRICE[0]: [FakeElement(text) for text in prices],
        },
    )


def _history_row(number: str) -> FakeElement:
    return FakeElement(
        number,
        children={
            sel.HISTORY_ROW_NUMBER[0]: [FakeElement(number)],
            sel.HISTORY_DETAILS_LINK[0]: [FakeElement("Details")],
        },
    )


def _portal(active_cards=(), history=(), history_rows=(), dialog=None) -> FakePage:
    page = FakePage()
    active = page.view("/claims/active")
    active[sel.ACTIVE_CLAIM_CARD] = list(active_cards)
    closed = page.view("/claims/closed")
    closed[sel.HISTORY_PET_CONTAINER[0]] = list(history)
    closed[sel.HISTORY_ROW[0]] = list(history_rows)
    if dialog is not None:
        active[sel.DETAIL_DIALOG[0]] = [dialog]
        closed[sel.DETAIL_DIALOG[0]] = [dialog]
    return page


# ----------------------------------------------------------------------
# Pure helpers
# ----------------------------------------------------------------------


@pytest.mark.parametrize(
    "claim_id, historical",
    [("12345", True), ("claim-0-buddy-ear-infection", False), ("#12345", False), ("١٢٣", False), ("", False)],
)
def test_historical_ids_are_ascii_digits(claim_id, historical):
    assert is_historical_claim_id(claim_id) is historical


def test_active_row_ids_are_slugs_with_list_position():
    row = ActiveClaimRow(index=2, pet_name="Buddy", status="pending", amount="$10", description="Dental  Cleaning")
    assert row.claim_id == "claim-2-buddy-dental-cleaning"
    assert ActiveClaimRow(index=0, pet_name="Nova", status="pending", amount="").claim_id == "claim-0-nova-unknown"


def test_historical_row_strips_hash():
    claim = HistoricalClaimRow(claim_number="#4567", pet_name="Nova", claim_date="01/02/2025", amount="$80").to_claim()
    assert claim.claim_id == "4567"
    assert claim.status == "closed"


def test_active_search_terms():
    assert active_search_terms("claim-3-nova-dental-cleaning") == (3, "nova dental cleaning")
    assert active_search_terms("claim-0-nova-unknown") == (0, "nova")
    assert active_search_terms("Buddy") == (None, "buddy")


def test_pair_history_nodes_tolerates_missing_prices():
    rows = pair_history_nodes(["#1", "01/01/2025", "#2", "02/01/2025", "#3"], ["$10.00"])
    assert rows == [("#1", "01/01/2025", "$10.00"), ("#2", "02/01/2025", "")]


# ----------------------------------------------------------------------
# Lists
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_active_claims_get_distinct_ids_and_default_status(tmp_path):
    page = _portal(
        active_cards=[
            _active_card("Buddy", "Ear infection", status="In Review"),
            _active_card("Buddy", "Ear infection"),
        ]
    )

    claims = await _client(page, tmp_path).get_active_claims()

    assert [claim.claim_id for claim in claims] == ["claim-0-buddy-ear-infection", "claim-1-buddy-ear-infection"]
    assert [claim.status for claim in claims] == ["in review", "pending"]
    assert claims[0].claim_amount == "$150.00"
    assert claims[0].claim_date == ""


@pytest.mark.asyncio
async def test_active_tab_is_clicked_when_not_selected(tmp_path):
    page = _portal()
    tab = FakeElement("Active", evaluate_result=False)
    page.view("/claims/active")[sel.ACTIVE_TAB[0]] = [tab]

    assert await _client(page, tmp_path).get_active_claims() == []
    assert tab.clicks == 1


@pytest.mark.asyncio
async def test_historical_claims_are_expanded_and_paired(tmp_path):
    page = _portal(
        history=[
            _history_container("Buddy", ["#101", "03/01/2025", "#100", "01/15/2025"], ["$200.00", "$75.50"]),
            _history_container("Nova", ["#99", "12/24/2024"], ["$40.00"]),
        ]
    )
    view_all = FakeElement("View all")
    page.view("/claims/closed")[sel.HISTORY_VIEW_ALL[0]] = [view_all]

    claims = await _client(page, tmp_path).get_historical_claims()

    assert view_all.clicks == 1
    assert [(c.claim_id, c.pet_name, c.claim_date, c.claim_amount, c.status) for c in claims] == [
        ("101", "Buddy", "03/01/2025", "$200.00", "closed"),
        ("100", "Buddy", "01/15/2025", "$75.50", "closed"),
        ("99", "Nova", "12/24/2024", "$40.00", "closed"),
    ]


@pytest.mark.asyncio
async def test_get_claims_lists_active_before_historical(tmp_path):
    page = _portal(
        active_cards=[_active_card("Nova", "Vomiting")],
        history=[_history_container("Buddy", ["#100", "01/15/2025"], ["$75.50"])],
    )

    claims = await _client(page, tmp_path).get_claims()

    assert [claim.claim_id for claim in claims] == ["claim-0-nova-vomiting", "100"]
    assert page.gotos == [f"{BASE_URL}/claims/active", f"{BASE_URL}/claims/closed"]


# ----------------------------------------------------------------------
# Details
# ----------------------------------------------------------------------


@pytest.mark.parametrize(
    "claim_id, path",
    [("12345", "/claims/closed"), ("claim-0-buddy-ear-infection", "/claims/active"), (" 777 ", "/claims/closed")],
)
@pytest.mark.asyncio
async def test_details_route_on_id_shape(tmp_path, claim_id, path):
    page = _portal()

    await _client(page, tmp_path).get_claim_details(claim_id)

    assert page.gotos == [f"{BASE_URL}{path}"]


@pytest.mark.asyncio
async def test_unknown_claim_is_a_soft_error(tmp_path):
    page = _portal(history_rows=[_history_row("#1")])

    details = await _client(page, tmp_path).get_claim_details("2")

    assert details.claim_id == "2"
    assert details.status == "unknown"
    assert "Could not find claim 2" in details.error


@pytest.mark.asyncio
async def test_details_read_from_dialog_selectors(tmp_path):
    dialog = FakeElement(
        "claim dialog",
        children={
            sel.DETAIL_CLAIM_ID[0]: [FakeElement("#4567")],
            sel.DETAIL_PET_NAME[0]: [FakeElement("Buddy")],
            sel.DETAIL_STATUS[0]: [FakeElement("Paid")],
            sel.DETAIL_DATE[0]: [FakeElement("03/14/2025")],
            sel.DETAIL_AMOUNT[0]: [FakeElement("120.50")],
            sel.DETAIL_POLICY_NUMBER[0]: [FakeElement("PN-2024-001")],
            sel.DETAIL_CLOSE[0]: [FakeElement("x")],
        },
    )
    rows = [_history_row("#4566"), _history_row("#4567")]
    page = _portal(history_rows=rows, dialog=dialog)

    details = await _client(page, tmp_path).get_claim_details("4567")

    assert rows[0].children[sel.HISTORY_DETAILS_LINK[0]][0].clicks == 0
    assert rows[1].children[sel.HISTORY_DETAILS_LINK[0]][0].clicks == 1
    assert details.error is None
    assert (details.claim_id, details.pet_name, details.status) == ("4567", "Buddy", "paid")
    assert (details.claim_date, details.claim_amount, details.policy_number) == ("03/14/2025", "$120.50", "PN-2024-001")
    assert details.local_eob_path is None and details.eob_summary is None
    assert dialog.children[sel.DETAIL_CLOSE[0]][0].clicks == 1


@pytest.mark.asyncio
async def test_details_fall_back_to_dialog_text(tmp_path):
    dialog = FakeElement(
        "Buddy's claim\n#4567\nStatus: Paid\nDate of visit 03/14/2025\nPayout 120.50\n"
        "Policy number: PN-2024-001\nReason for visit: Ear infection"
    )
    page = _portal(history_rows=[_history_row("#4567")], dialog=dialog)

    details = await _client(page, tmp_path).get_claim_details("4567")

    assert details.to_dict() == {
        "claim_id": "4567",
        "pet_name": "Buddy",
        "claim_date": "03/14/2025",
        "claim_amount": "$120.50",
        "status": "paid",
        "description": "Ear infection",
        "policy_number": "PN-2024-001",
        "eob_summary": None,
        "invoice_summary": None,
        "local_eob_path": None,
        "local_invoice_path": None,
        "error": None,
    }


@pytest.mark.asyncio
async def test_active_details_prefer_listed_position(tmp_path):
    cards = [_active_card("Buddy", "Ear infection"), _active_card("Buddy", "Ear infection")]
    dialog = FakeElement("Buddy's claim\nStatus: Pending")
    page = _portal(active_cards=cards, dialog=dialog)

    details = await _client(page, tmp_path).get_claim_details("claim-1-buddy-ear-infection")

    links = [card.children[sel.ACTIVE_DETAILS_LINK[0]][0] for card in cards]
    assert [link.clicks for link in links] == [0, 1]
    assert details.claim_id == "claim-1-buddy-ear-infection"
    assert details.status == "pending"


@pytest.mark.asyncio
async def test_active_details_match_words_across_the_card(tmp_path):
    cards = [_active_card("Nova", "Vomiting"), _active_card("Buddy", "Ear infection")]
    page = _portal(active_cards=cards, dialog=FakeElement("Buddy's claim"))

    # A stale index still finds the card by its words
    details = await _client(page, tmp_path).get_claim_details("claim-0-buddy-ear-infection")

    assert details.error is None
    assert cards[1].children[sel.ACTIVE_DETAILS_LINK[0]][0].clicks == 1


@pytest.mark.asyncio
async def test_documents_are_downloaded_from_popups(tmp_path):
    eob = FakeElement("Explanation of Benefits")
    invoice = FakeElement("Invoice")
    dialog = FakeElement(
        "#4567",
        children={sel.EOB_DOCUMENT[0]: [eob], sel.INVOICE_DOCUMENT[0]: [invoice]},
    )
    page = _portal(history_rows=[_history_row("#4567")], dialog=dialog)
    popup = FakePopup(payload={"data": base64.b64encode(b"%PDF-1.4 eob").decode(), "contentType": "application/pdf"})
    page.popups.append(popup)

    details = await _client(page, tmp_path).get_claim_details("4567")

    saved = Path(details.local_eob_path)
    assert saved.parent == tmp_path / "docs"
    assert saved.name.startswith("eob_4567_") and saved.suffix == ".pdf"
    assert saved.read_bytes() == b"%PDF-1.4 eob"
    assert details.eob_summary == f"Explanation of Benefits downloaded to: {saved}"
    assert popup.closed
    assert eob.clicks == 1

    # No popup opened for the invoice: reported, not raised
    assert details.local_invoice_path is None
    assert details.invoice_summary.startswith("Invoice found but download failed:")


@pytest.mark.asyncio
async def test_empty_viewer_is_reported(tmp_path):
    dialog = FakeElement("#4567", children={sel.EOB_DOCUMENT[0]: [FakeElement("Explanation of Benefits")]})
    page = _portal(history_rows=[_history_row("#4567")], dialog=dialog)
    popup = FakePopup(payload=None)
    page.popups.append(popup)

    details = await _client(page, tmp_path).get_claim_details("4567")

    assert details.local_eob_path is None
    assert details.eob_summary == "Explanation of Benefits viewer opened but contained no document"
    assert popup.closed


def test_client_creates_download_dir_and_exposes_config(tmp_path):
    config = FetchPetConfig(username="u@example.com", password="pw", download_dir=str(tmp_path / "nested" / "docs"))

    client = FetchPetClient(config, page=FakePage())

    assert (tmp_path / "nested" / "docs").is_dir()
    assert client.get_config() is config


@pytest.mark.asyncio
async def test_active_details_select_the_active_tab_like_the_listing(tmp_path):
    page = _portal(dialog=FakeElement("Buddy's claim"))
    active = page.view("/claims/active")
    card = _active_card("Buddy", "Ear infection")

    def show_active_cards() -> None:
        active[sel.ACTIVE_CLAIM_CARD] = [card]

    # Never reports itself selected, so every visit to the view clicks it
    tab = FakeElement("Active", evaluate_result=False, on_click=show_active_cards)
    active[sel.ACTIVE_TAB[0]] = [tab]
    client = _client(page, tmp_path)

    claims = await client.get_active_claims()
    active[sel.ACTIVE_CLAIM_CARD] = []
    details = await client.get_claim_details(claims[0].claim_id)

    assert [claim.claim_id for claim in claims] == ["claim-0-buddy-ear-infection"]
    assert details.error is None
    assert tab.clicks == 2
    assert card.children[sel.ACTIVE_DETAILS_LINK[0]][0].clicks == 1
