# schedule_viewer/fetchers/csv_fetcher.py

from typing import Optional

from loguru import logger

from schedule_viewer.models.enums import FetchSource
from schedule_viewer.models.table import RawTable
from schedule_viewer.parsing.csv_parser import parse_csv
from .base_fetcher import AuthRequiredError, BaseFetcher, csv_export_url


def looks_like_html(text: str) -> bool:
    return text.strip().startswith("<!DOCTYPE") or "<html" in text


class PublicCsvFetcher(BaseFetcher):
    """Reads a publicly shared sheet through its CSV export URL.

    The export only covers the tab named by the URL's gid, so ``preferred_tab``
    is ignored.
    """

    source: FetchSource = FetchSource.PUBLIC_CSV

    async def fetch_table(
        self, sheet_url: str, preferred_tab: Optional[str] = None
    ) -> RawTable:
        export_url = csv_export_url(sheet_url)
        if preferred_tab:
            logger.debug(
                f"CSV export cannot select tab '{preferred_tab}'; using the URL's gid."
            )

        response = await self._make_request("GET", export_url)
        self._raise_for_status(response)

        csv_text = response.text
        if looks_like_html(csv_text):
            logger.warning("CSV export returned an HTML page; the sheet is not public.")
            raise AuthRequiredError(
                "Sheet requires authentication. Please provide an API key."
            )

        table = parse_csv(csv_text)
        logger.info(
            f"Fetched CSV export: {len(table.headers)} columns, {len(table.rows)} rows"
        )
        return table
