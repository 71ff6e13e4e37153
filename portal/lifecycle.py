"""Client lifecycle: background login and the "ready client" gate shared by all callers."""

import asyncio
import logging
from collections.abc import Callable

from .client import FetchPetClient
from .errors import LoginError

logger = logging.getLogger(__name__)

LoginFailedCallback = Callable[[BaseException], None]


class ClientManager:
    """Creates one FetchPetClient and logs it in exactly once.

    Login can be started in the background (e.g. while a server is still
    starting up). Every caller of ``get_ready_client`` awaits the same login
    attempt; once it has failed, the stored error is re-raised on every call
    without retrying until ``cleanup`` resets the manager.
    """

    def __init__(self, client_factory: Callable[[], FetchPetClient]) -> None:
        self._client_factory = client_factory
        self._client: FetchPetClient | None = None
        self._login_task: asyncio.Task | None = None
        self._login_error: BaseException | None = None
        self._on_login_failed: LoginFailedCallback | None = None

    @property
    def client(self) -> FetchPetClient:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def start_background_login(self, on_failed: LoginFailedCallback | None = None) -> None:
        """Kick off login without waiting for it. Repeated calls are ignored."""
        if self._login_task is not None:
            return
        self._on_login_failed = on_failed
        logger.info("Starting background login to Fetch Pet...")
        self._login_task = asyncio.create_task(self._login())
        # Failures are surfaced through get_ready_client and the callback
        self._login_task.add_done_callback(lambda task: task.cancelled() or task.exception())

    async def _login(self) -> None:
        try:
            await self.client.initialize()
        except Exception as e:
            self._login_error = e
            logger.error("Background login failed: %s", e)
            if self._on_login_failed is not None:
                self._on_login_failed(e)
            raise

    async def get_ready_client(self) -> FetchPetClient:
        """Return the logged-in client, waiting for an in-flight login if there is one."""
        if self._login_error is not None:
            raise LoginError(f"Login failed: {_reason(self._login_error)}") from self._login_error
        if self._login_task is None:
            self._login_task = asyncio.create_task(self._login())
        try:
            await asyncio.shield(self._login_task)
        except Exception as e:
            raise LoginError(f"Login failed: {_reason(e)}") from e
        return self.client

    async def cleanup(self) -> None:
        """Close the browser and forget any login state."""
        task, self._login_task = self._login_task, None
        if task is not None and not task.done():
            task.cancel()
        client, self._client = self._client, None
        self._login_error = None
        self._on_login_failed = None
        if client is not None:
            await client.close()


def _reason(error: BaseException) -> str:
    message = str(error)
    # LoginError messages already carry the prefix
    return message.removeprefix("Login failed: ").removeprefix("Login failed - ") or type(error).__name__
