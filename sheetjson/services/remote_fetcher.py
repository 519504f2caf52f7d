"""
Remote spreadsheet byte source.

Resolves a shareable Google Sheets URL to the bytes of its xlsx export.
The document identifier is taken from the URL's ``/d/<id>`` segment; a
URL without one is rejected before any network access. The fetched bytes
are returned as a SourceFile and decoded exactly like a local file.

Timeouts and retries are left to httpx; this module adds none.

Example:
    fetcher = RemoteFetcher()
    source = await fetcher.fetch("https://docs.google.com/spreadsheets/d/ABC123/edit")
    workbook = decoder.decode(source)
"""

import logging
import re

import httpx

from sheetjson.config import ExportSettings, get_settings
from sheetjson.exceptions.export_exceptions import InvalidReferenceError, NetworkError
from sheetjson.models.export_models import SourceFile

logger = logging.getLogger(__name__)

DOCUMENT_ID_PATTERN = re.compile(r"/d/([a-zA-Z0-9_-]+)")


def extract_document_id(url: str) -> str:
    """
    Extract the document identifier from a shareable URL.

    Args:
        url: URL such as "https://docs.google.com/spreadsheets/d/ABC123/edit".

    Returns:
        The identifier, e.g. "ABC123".

    Raises:
        InvalidReferenceError: If the URL has no ``/d/<id>`` segment.
    """
    match = DOCUMENT_ID_PATTERN.search(url or "")
    if not match:
        raise InvalidReferenceError(url)
    return match.group(1)


def build_export_url(document_id: str, template: str | None = None) -> str:
    """Fill the export endpoint template with a document identifier."""
    template = template or get_settings().remote_export_url_template
    return template.format(document_id=document_id)


class RemoteFetcher:
    """
    Fetches remote document bytes over HTTP.

    Attributes:
        export_url_template: Template of the export endpoint.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        settings: ExportSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the RemoteFetcher.

        Args:
            settings: Optional settings. If None, uses the defaults.
            client: Optional shared httpx client. If None, a client is
                    opened per fetch.
        """
        settings = settings or get_settings()
        self.export_url_template = settings.remote_export_url_template
        self.timeout = settings.remote_timeout_seconds
        self._client = client

    async def _get(self, export_url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(export_url, follow_redirects=True)

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await client.get(export_url)

    async def fetch(self, url: str) -> SourceFile:
        """
        Fetch the xlsx export of a remote document.

        Args:
            url: Shareable document URL.

        Returns:
            SourceFile named "{document_id}.xlsx" with the exported bytes.

        Raises:
            InvalidReferenceError: If no identifier can be extracted.
            NetworkError: If the request fails or returns an error status.
        """
        document_id = extract_document_id(url)
        export_url = build_export_url(document_id, self.export_url_template)

        logger.info("Fetching remote document %s", document_id)
        try:
            response = await self._get(export_url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                url=export_url,
                status_code=e.response.status_code,
                reason=e.response.reason_phrase,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(url=export_url, reason=str(e) or type(e).__name__) from e

        logger.info("Fetched remote document %s (%d bytes)", document_id, len(response.content))
        return SourceFile(name=f"{document_id}.xlsx", data=response.content)
