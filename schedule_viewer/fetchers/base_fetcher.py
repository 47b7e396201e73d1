import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict

from schedule_viewer.config.settings import AppSettings, settings as default_settings
from schedule_viewer.models.enums import FetchSource
from schedule_viewer.models.table import RawTable

SHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
GID_PATTERN = re.compile(r"gid=(\d+)")

CSV_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"


class FetchError(Exception):
    """Base exception for every failure while loading sheet data."""

    pass


class InputError(FetchError):
    """The sheet locator is missing or carries no spreadsheet id."""

    pass


class AuthRequiredError(FetchError):
    """The public export answered with a login page instead of data."""

    pass


class UpstreamError(FetchError):
    """The Sheets API or the relay answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SheetNotFoundError(UpstreamError):
    """The requested tab does not exist in the spreadsheet."""

    def __init__(self, tab_name: str, available: List[str]):
        super().__init__(
            f'Sheet "{tab_name}" not found. Available sheets: {", ".join(available)}',
            status_code=404,
        )
        self.tab_name = tab_name
        self.available = available


class EmptyResultError(FetchError):
    """The data is structurally valid but yields nothing to show."""

    def __init__(
        self,
        message: str,
        row_count: int = 0,
        headers: Optional[List[str]] = None,
        sample_keys: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.row_count = row_count
        self.headers = headers or []
        self.sample_keys = sample_keys or []

    @classmethod
    def for_table(cls, table: RawTable) -> "EmptyResultError":
        """Builds the 'no match data' error with diagnostics about the table."""
        message = "No match data found in the sheet. "
        message += f"Found {len(table.rows)} data rows. "
        message += f"Columns detected: {', '.join(table.headers)}. "
        sample_keys = table.sample_keys()
        if sample_keys:
            message += f"Sample row keys: {', '.join(sample_keys)}."
        return cls(
            message.strip(),
            row_count=len(table.rows),
            headers=list(table.headers),
            sample_keys=sample_keys,
        )


class SheetInfo(BaseModel):
    """Spreadsheet id and tab id (gid) extracted from a sheet URL."""

    model_config = ConfigDict(frozen=True)

    sheet_id: str
    gid: str = "0"


def extract_sheet_info(url: str) -> SheetInfo:
    """Extracts the spreadsheet id and gid from a Google Sheets URL."""
    sheet_id_match = SHEET_ID_PATTERN.search(url or "")
    if not sheet_id_match:
        raise InputError("Invalid Google Sheet URL format")

    gid_match = GID_PATTERN.search(url)
    return SheetInfo(
        sheet_id=sheet_id_match.group(1),
        gid=gid_match.group(1) if gid_match else "0",
    )


def csv_export_url(url: str) -> str:
    """Converts a sheet URL into its public CSV export URL."""
    info = extract_sheet_info(url)
    return CSV_EXPORT_URL.format(sheet_id=info.sheet_id, gid=info.gid)


def error_message_from_body(body: Any) -> Optional[str]:
    """Pulls the message out of a `{error: {message}}` or `{error: str}` envelope."""
    if not isinstance(body, dict) or not body.get("error"):
        return None
    error = body["error"]
    if isinstance(error, dict):
        return error.get("message") or str(error)
    return str(error)


class BaseFetcher(ABC):
    """Abstract base class for sheet data fetchers."""

    source: FetchSource

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self.settings = app_settings or default_settings
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.request_timeout),
            follow_redirects=True,
        )

    @abstractmethod
    async def fetch_table(
        self, sheet_url: str, preferred_tab: Optional[str] = None
    ) -> RawTable:
        """Fetch one tab of the spreadsheet as a RawTable.

        Args:
            sheet_url: The Google Sheets URL entered by the operator.
            preferred_tab: Tab to read; the fetcher's own rules apply when omitted.

        Returns:
            The parsed tab. Rows may be empty; callers decide whether that is an error.
        """
        pass

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> httpx.Response:
        """Makes a single HTTP request, mapping transport failures to UpstreamError.

        Non-success statuses are returned as-is; the caller knows how to read
        the provider's error body.
        """
        logger.debug(f"Making {method} request to {url}")
        try:
            response = await self.client.request(method, url, params=params, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Timed out requesting {url}: {e}")
            raise UpstreamError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"Request error for {url}: {e}")
            raise UpstreamError(f"Network error: {e}") from e

        logger.debug(f"Response {response.status_code} for {url}")
        return response

    def _raise_for_status(self, response: httpx.Response, body: Any = None) -> None:
        """Raises UpstreamError for non-success responses, using the error envelope when present."""
        if response.is_success:
            return
        message = error_message_from_body(body)
        if message:
            raise UpstreamError(f"API Error: {message}", status_code=response.status_code)
        raise UpstreamError(
            f"Failed to fetch sheet data: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )

    async def close(self):
        """Closes the underlying HTTP client."""
        await self.client.aclose()
        logger.info(f"Closed HTTP client for {self.source.value}")
