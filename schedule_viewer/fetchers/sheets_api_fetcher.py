# schedule_viewer/fetchers/sheets_api_fetcher.py

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from loguru import logger

from schedule_viewer.config.settings import AppSettings
from schedule_viewer.models.enums import FetchSource
from schedule_viewer.models.table import RawTable
from schedule_viewer.parsing.csv_parser import table_from_values
from .base_fetcher import (
    BaseFetcher,
    EmptyResultError,
    FetchError,
    InputError,
    SheetInfo,
    SheetNotFoundError,
    UpstreamError,
    extract_sheet_info,
)

SHEETS_API_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_TAB_NAME = "Sheet1"


class SheetsApiFetcher(BaseFetcher):
    """Reads sheet tabs through the Sheets v4 values API.

    Requests go straight to Google with ``api_key``, or through the relay at
    ``proxy_url`` (which holds the key server-side) when no key is given.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        proxy_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        if not api_key and not proxy_url:
            logger.error("Sheets API fetcher created without an API key or relay URL.")
            raise InputError(
                "API key is required. Please enter your Google Sheets API key or configure it server-side."
            )
        super().__init__(client=client, app_settings=app_settings)
        self.api_key = api_key
        self.proxy_url = proxy_url
        self.use_proxy = not api_key and bool(proxy_url)
        self.source = FetchSource.RELAY if self.use_proxy else FetchSource.SHEETS_API
        logger.info(f"SheetsApiFetcher initialized ({self.source.value}).")

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        response = await self._make_request("GET", url, params=params)
        try:
            body = response.json()
        except ValueError:
            body = None
        self._raise_for_status(response, body)
        if body is None:
            raise UpstreamError(
                f"Invalid JSON in response from {self.source.value}",
                status_code=response.status_code,
            )
        return body

    async def fetch_metadata(self, sheet_id: str) -> Dict[str, Any]:
        """Fetches spreadsheet metadata (tab ids and titles)."""
        if self.use_proxy:
            body = await self._get_json(
                self.proxy_url, {"sheetId": sheet_id, "action": "metadata"}
            )
        else:
            body = await self._get_json(
                f"{SHEETS_API_BASE_URL}/{sheet_id}", {"key": self.api_key}
            )
        if not isinstance(body, dict):
            return {"sheets": []}
        return body

    async def resolve_tab_name(
        self, info: SheetInfo, preferred_tab: Optional[str] = None
    ) -> str:
        """Works out which tab to read.

        A preferred tab must exist in the spreadsheet. Without one, the tab
        whose id matches the URL's gid is used, else the first well-known
        schedule tab name present. When metadata cannot be fetched the
        preferred (or first well-known) name is used blindly.
        """
        candidates: List[str] = list(self.settings.common_tab_names)
        if preferred_tab:
            candidates = [preferred_tab] + [n for n in candidates if n != preferred_tab]

        try:
            metadata = await self.fetch_metadata(info.sheet_id)
        except FetchError as e:
            logger.warning(
                f"Could not fetch sheet metadata, will try common sheet names: {e}"
            )
            return preferred_tab or candidates[0]

        sheets = metadata.get("sheets") or []
        titles = [
            sheet.get("properties", {}).get("title", "")
            for sheet in sheets
            if isinstance(sheet, dict)
        ]

        if not sheets:
            logger.warning("Sheet metadata lists no tabs.")
            return preferred_tab or DEFAULT_TAB_NAME

        if preferred_tab:
            if preferred_tab in titles:
                return preferred_tab
            raise SheetNotFoundError(preferred_tab, titles)

        if info.gid != "0":
            for sheet in sheets:
                properties = sheet.get("properties", {})
                if str(properties.get("sheetId")) == info.gid:
                    logger.debug(f"Resolved gid {info.gid} to tab '{properties.get('title')}'")
                    return properties.get("title", DEFAULT_TAB_NAME)
            return DEFAULT_TAB_NAME

        for name in candidates:
            if name in titles:
                return name
        return DEFAULT_TAB_NAME

    async def fetch_table(
        self, sheet_url: str, preferred_tab: Optional[str] = None
    ) -> RawTable:
        info = extract_sheet_info(sheet_url)
        tab_name = await self.resolve_tab_name(info, preferred_tab)
        value_range = f"{tab_name}!{self.settings.value_range}"
        logger.info(f"Fetching range '{value_range}' via {self.source.value}")

        if self.use_proxy:
            body = await self._get_json(
                self.proxy_url,
                {"sheetId": info.sheet_id, "sheetName": tab_name, "range": value_range},
            )
        else:
            body = await self._get_json(
                f"{SHEETS_API_BASE_URL}/{info.sheet_id}/values/{quote(value_range, safe='')}",
                {"key": self.api_key},
            )

        values = body.get("values") if isinstance(body, dict) else None
        if not values:
            raise EmptyResultError("Sheet appears to be empty")

        table = table_from_values(values)
        logger.info(
            f"Fetched tab '{tab_name}': {len(table.headers)} columns, {len(table.rows)} rows"
        )
        return table
