# schedule_viewer/models/team.py
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TeamRosterEntry(BaseModel):
    """Represents a team from the roster tab."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1)  # 1-based row position in the roster tab
    team_number: Optional[str] = None
    team_name: Optional[str] = None
    organization: Optional[str] = None
    other_data: Dict[str, str] = Field(default_factory=dict)  # e.g. city

    @property
    def city(self) -> Optional[str]:
        return self.other_data.get("city")

    @property
    def title(self) -> str:
        return f"Team {self.team_number}" if self.team_number else "Unnamed Team"
