"""Saves claim documents (EOB, invoice) that the portal only shows in a popup viewer."""

import base64
import logging
import mimetypes
import re
import time
from pathlib import Path
from typing import Any

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)

_POPUP_TIMEOUT_MS = 5_000
_POPUP_SETTLE_TIMEOUT_MS = 10_000

# Runs inside the popup: fetch whatever the embedded viewer points at and hand
# it back as base64, since blob: URLs are only readable from that page.
_READ_VIEWER_JS = """
async () => {
    const viewer = document.querySelector('embed, iframe, object');
    const src = viewer && (viewer.src || viewer.data);
    const url = src || window.location.href;
    if (!url || url === 'about:blank') return null;
    const response = await fetch(url);
    const blob = await response.blob();
    const dataUrl = await new Promise((resolve, reject) => {
        const reader = new FileReader();
        reader.onload = () => resolve(reader.result);
        reader.onerror = () => reject(reader.error);
        reader.readAsDataURL(blob);
    });
    return { data: String(dataUrl).split(',')[1] || '', contentType: blob.type };
}
"""


class DocumentDownloader:
    """Downloads documents linked from an open claim detail dialog into ``download_dir``."""

    def __init__(self, download_dir: str | Path) -> None:
        self.download_dir = Path(download_dir)

    async def download(self, page: Page, trigger: Any, claim_id: str, kind: str, label: str) -> tuple[str | None, str]:
        """Click ``trigger``, read the document from the popup it opens and save it.

        Returns ``(local_path, summary)``. Never raises: any failure becomes a
        summary describing what went wrong and a None path.
        """
        try:
            async with page.expect_popup(timeout=_POPUP_TIMEOUT_MS) as popup_info:
                await trigger.click()
            popup = await popup_info.value
            try:
                try:
                    await popup.wait_for_load_state("networkidle", timeout=_POPUP_SETTLE_TIMEOUT_MS)
                except PlaywrightTimeoutError:
                    logger.debug("%s popup did not reach network idle; reading anyway", label)
                payload = await popup.evaluate(_READ_VIEWER_JS)
            finally:
                await popup.close()

            if not payload or not payload.get("data"):
                return None, f"{label} viewer opened but contained no document"

            content = base64.b64decode(payload["data"])
            path = self.save(content, claim_id, kind, payload.get("contentType"))
            logger.info("Saved %s for claim %s to %s", label, claim_id, path)
            return str(path), f"{label} downloaded to: {path}"
        except Exception as e:
            logger.warning("Could not download %s for claim %s: %s", label, claim_id, e)
            return None, f"{label} found but download failed: {e!s}"

    def save(self, content: bytes, claim_id: str, kind: str, content_type: str | None = None) -> Path:
        """Write bytes as ``{kind}_{claim id}_{ms timestamp}{ext}`` in the download directory."""
        safe_claim_id = re.sub(r"[^a-zA-Z0-9]", "", claim_id) or "unknown"
        extension = (mimetypes.guess_extension(content_type) if content_type else None) or ".pdf"
        self.download_dir.mkdir(parents=True, exist_ok=True)
        path = self.download_dir / f"{kind}_{safe_claim_id}_{int(time.time() * 1000)}{extension}"
        path.write_bytes(content)
        return path
