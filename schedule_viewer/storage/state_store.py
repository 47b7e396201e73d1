# schedule_viewer/storage/state_store.py
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel, ValidationError

from schedule_viewer.models.enums import StoredField


class UserState(BaseModel):
    """Operator settings remembered between runs."""

    sheet_url: Optional[str] = None
    api_key: Optional[str] = None
    last_load: Optional[datetime] = None


class UserStateStore:
    """Persists UserState as a small JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> UserState:
        """Reads the stored state; a missing or unreadable file yields an empty state."""
        if not self.path.exists():
            logger.debug(f"No saved state at {self.path}")
            return UserState()
        try:
            return UserState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable saved state at {self.path}: {e}")
            return UserState()

    def save(self, state: UserState) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write saved state to {self.path}: {e}")
            raise

    def _update(self, **changes) -> UserState:
        state = self.load().model_copy(update=changes)
        self.save(state)
        return state

    def save_sheet_url(self, url: Optional[str]) -> UserState:
        return self._update(sheet_url=url or None)

    def save_api_key(self, api_key: Optional[str]) -> UserState:
        """Stores the API key; an empty value clears it."""
        return self._update(api_key=api_key or None)

    def mark_loaded(self, when: Optional[datetime] = None) -> UserState:
        return self._update(last_load=when or datetime.now(timezone.utc))

    def clear(self, field: StoredField) -> UserState:
        return self._update(**{field.value: None})
