from __future__ import annotations

from typing import Callable

import httpx
import pytest

from schedule_viewer.config.settings import AppSettings

SHEET_ID = "1AbC-dEf_123"
SHEET_URL = f"https://docs.google.com/spreadsheets/d/{SHEET_ID}/edit#gid=0"

GROUPED_VALUES = [
    ["Match", "Time", "Team Info", "Table/Team", "Table/Team", "Table/Team", "Table/Team"],
    ["2", "9:10", "", "Table 3\n300\nGamma", "Table 4\n400\nDelta", "", ""],
    ["1", "9:00", "Practice", "Table 1\n100\nAcme\nSpringfield", "Table 2\n200\nBeta", "Table 3\n300\nGamma", ""],
]

ROSTER_VALUES = [
    ["Team Number", "Team Name", "Organization", "City"],
    ["100", "Acme", "Springfield Elementary", "Springfield"],
    ["200", "Beta", "Shelbyville Middle", "  "],
    ["", "", "Nobody", "Nowhere"],
]


def metadata_body(*titles: str) -> dict:
    return {
        "sheets": [
            {"properties": {"sheetId": index * 100, "title": title}}
            for index, title in enumerate(titles)
        ]
    }


@pytest.fixture
def test_settings(tmp_path) -> AppSettings:
    return AppSettings(
        google_sheets_api_key=None,
        api_proxy_url=None,
        state_file=tmp_path / "state.json",
        _env_file=None,
    )


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Builds an AsyncClient whose requests are answered by ``handler``."""

    def factory(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory
