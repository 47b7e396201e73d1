"""Viewer session state and the load orchestration around it.

A load runs fetch -> parse -> detect -> normalize for the schedule tab, then
the roster tab. ``ViewerState`` is only touched once everything needed has
been computed: a failed load leaves the previous matches and teams in place
and records the message in ``last_error``.
"""

from datetime import datetime, timezone
from typing import List, Optional

import httpx
from loguru import logger
from pydantic import BaseModel, Field

from schedule_viewer.config.settings import AppSettings, settings as default_settings
from schedule_viewer.fetchers.base_fetcher import (
    AuthRequiredError,
    BaseFetcher,
    EmptyResultError,
    FetchError,
    InputError,
    UpstreamError,
)
from schedule_viewer.fetchers.csv_fetcher import PublicCsvFetcher
from schedule_viewer.fetchers.sheets_api_fetcher import SheetsApiFetcher
from schedule_viewer.models.match import Match
from schedule_viewer.models.team import TeamRosterEntry
from schedule_viewer.normalization.normalizer import Normalizer
from schedule_viewer.normalization.roster import filter_roster, normalize_roster
from schedule_viewer.storage.state_store import UserStateStore


class LoadInProgressError(FetchError):
    """A load was requested while another one is still running."""

    pass


def _plural(count: int, noun: str, plural: str) -> str:
    return f"{count} {noun if count == 1 else plural}"


class ViewerState(BaseModel):
    """Everything the viewer shows; replaced as a whole by each successful load."""

    matches: List[Match] = Field(default_factory=list)
    teams: List[TeamRosterEntry] = Field(default_factory=list)
    current_index: int = 0
    last_error: Optional[str] = None
    loaded_at: Optional[datetime] = None
    loading: bool = False

    @property
    def current_match(self) -> Optional[Match]:
        if not self.matches:
            return None
        return self.matches[self.current_index]

    def replace(
        self,
        matches: List[Match],
        teams: List[TeamRosterEntry],
        loaded_at: Optional[datetime] = None,
    ) -> None:
        self.matches = list(matches)
        self.teams = list(teams)
        self.current_index = 0
        self.last_error = None
        self.loaded_at = loaded_at or datetime.now(timezone.utc)

    def select(self, index: int) -> bool:
        """Jumps to a match by position. Out-of-range positions are ignored."""
        if 0 <= index < len(self.matches):
            self.current_index = index
            return True
        return False

    def navigate(self, direction: int) -> bool:
        """Moves forward/backward through the matches, stopping at either end."""
        return self.select(self.current_index + direction)

    @property
    def has_previous(self) -> bool:
        return self.current_index > 0

    @property
    def has_next(self) -> bool:
        return self.current_index < len(self.matches) - 1

    def match_labels(self) -> List[str]:
        return [match.label for match in self.matches]

    def search_teams(self, search_term: str) -> List[TeamRosterEntry]:
        return filter_roster(self.teams, search_term)

    def status_line(self) -> Optional[str]:
        """Summary like 'Data loaded - 12 matches, 30 teams', None before any load."""
        if not self.loaded_at or not (self.matches or self.teams):
            return None
        parts = []
        if self.matches:
            parts.append(_plural(len(self.matches), "match", "matches"))
        if self.teams:
            parts.append(_plural(len(self.teams), "team", "teams"))
        return f"Data loaded - {', '.join(parts)}"


class ScheduleLoader:
    """Loads the schedule and roster tabs into a ViewerState."""

    def __init__(
        self,
        app_settings: Optional[AppSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        store: Optional[UserStateStore] = None,
        normalizer: Optional[Normalizer] = None,
    ):
        self.settings = app_settings or default_settings
        self.client = client
        self.store = store
        self.normalizer = normalizer or Normalizer()

    def _make_fetcher(self, api_key: Optional[str]) -> BaseFetcher:
        key = api_key or self.settings.google_sheets_api_key
        if key or self.settings.api_proxy_url:
            return SheetsApiFetcher(
                api_key=key,
                proxy_url=self.settings.api_proxy_url,
                client=self.client,
                app_settings=self.settings,
            )
        return PublicCsvFetcher(client=self.client, app_settings=self.settings)

    async def load(
        self, state: ViewerState, sheet_url: str, api_key: Optional[str] = None
    ) -> ViewerState:
        """Runs one full load and replaces the state's data on success.

        Raises:
            LoadInProgressError: another load on this state has not finished.
            FetchError: any failure loading the schedule; the roster is optional.
        """
        if state.loading:
            raise LoadInProgressError("A load is already in progress.")

        sheet_url = (sheet_url or "").strip()
        api_key = (api_key or "").strip() or None

        state.loading = True
        try:
            if not sheet_url:
                raise InputError("Please enter a Google Sheet URL")

            if self.store:
                self.store.save_sheet_url(sheet_url)
                if api_key:
                    self.store.save_api_key(api_key)

            fetcher = self._make_fetcher(api_key)
            try:
                matches = await self._load_matches(fetcher, sheet_url)
                teams = await self._load_roster(fetcher, sheet_url)
            finally:
                if self.client is None:
                    await fetcher.close()
        except FetchError as e:
            state.last_error = f"Error loading data: {e}"
            logger.error(state.last_error)
            raise
        finally:
            state.loading = False

        state.replace(matches, teams)
        if self.store:
            self.store.mark_loaded(state.loaded_at)
        logger.success(state.status_line() or "Load finished.")
        return state

    async def _load_matches(self, fetcher: BaseFetcher, sheet_url: str) -> List[Match]:
        if isinstance(fetcher, SheetsApiFetcher):
            table = await fetcher.fetch_table(sheet_url, self.settings.match_tab_name)
        else:
            try:
                table = await fetcher.fetch_table(sheet_url)
            except (AuthRequiredError, UpstreamError) as e:
                raise AuthRequiredError(
                    "CSV access failed. The sheet may be private. "
                    f"Please provide a Google Sheets API key. Error: {e}"
                ) from e

        matches = self.normalizer.normalize(table)
        if not matches:
            error = EmptyResultError.for_table(table)
            logger.error(f"{error} Headers: {table.headers}")
            raise error
        return matches

    async def _load_roster(
        self, fetcher: BaseFetcher, sheet_url: str
    ) -> List[TeamRosterEntry]:
        """Loads the roster tab. Failures leave the roster empty instead of failing the load."""
        if not isinstance(fetcher, SheetsApiFetcher):
            logger.info("Team list requires API key access; skipping roster.")
            return []

        try:
            table = await fetcher.fetch_table(sheet_url, self.settings.team_tab_name)
        except FetchError as e:
            logger.warning(f"Error loading team data: {e}")
            return []
        return normalize_roster(table)
