import pytest

from portal import BrowserNotInitializedError, FetchPetConfig, LoginError
from portal import selectors as sel
from portal.session import PortalSession
from tests.fakes import BASE_URL, FakeElement, FakePage


def _login_page(url: str = BASE_URL) -> tuple[FakePage, dict[str, FakeElement]]:
    page = FakePage(url=url)
    fields = {
        "email": page.add(sel.EMAIL_INPUT[0], FakeElement()),
        "password": page.add(sel.PASSWORD_INPUT[0], FakeElement()),
        "sign_in": page.add(sel.SIGN_IN_BUTTON[0], FakeElement("Sign In")),
    }
    return page, fields


def _config(base_url: str = BASE_URL) -> FetchPetConfig:
    return FetchPetConfig(username="owner@example.com", password="s3cret", base_url=base_url)


@pytest.mark.asyncio
async def test_initialize_logs_in_once():
    page, fields = _login_page()
    session = PortalSession(_config(), page=page)

    await session.initialize()
    await session.initialize()

    assert session.authenticated
    assert page.gotos == [BASE_URL]
    assert fields["email"].filled == ["owner@example.com"]
    assert fields["password"].filled == ["s3cret"]
    assert fields["sign_in"].clicks == 1
    assert page.wait_for_function_args == [[list(sel.LOGIN_URL_MARKERS), sel.POST_LOGIN_NAV]]


@pytest.mark.asyncio
async def test_login_failure_reports_portal_error_text():
    login_url = f"{BASE_URL}/login"
    page, _ = _login_page(login_url)
    page.login_signal = False
    page.add(sel.LOGIN_ERROR[0], FakeElement("  Incorrect email or password "))
    session = PortalSession(_config(login_url), page=page)

    with pytest.raises(LoginError, match="Login failed: Incorrect email or password"):
        await session.initialize()
    assert not session.authenticated


@pytest.mark.asyncio
async def test_login_failure_without_error_text():
    login_url = f"{BASE_URL}/signin"
    page, _ = _login_page(login_url)
    page.login_signal = False
    session = PortalSession(_config(login_url), page=page)

    with pytest.raises(LoginError, match="still on login page"):
        await session.initialize()


@pytest.mark.asyncio
async def test_missing_email_field_is_a_login_error():
    page = FakePage(url=BASE_URL)
    session = PortalSession(_config(), page=page)

    with pytest.raises(LoginError, match="email field"):
        await session.initialize()


def test_page_requires_initialization():
    session = PortalSession(_config())

    with pytest.raises(BrowserNotInitializedError, match="Call initialize\\(\\) first"):
        session.page


@pytest.mark.asyncio
async def test_close_resets_state():
    page, _ = _login_page()
    session = PortalSession(_config(), page=page)
    await session.initialize()

    await session.close()

    assert not session.authenticated
    with pytest.raises(BrowserNotInitializedError):
        await session.get_current_url()
