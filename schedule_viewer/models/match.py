from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class TeamSlot(BaseModel):
    """One team's appearance in a match."""

    model_config = ConfigDict(frozen=True)

    table: Optional[int] = None
    # Multi-line for grouped schedules: identifier, display name, free text
    info: str = ""
    raw: str = ""
    team_number: Optional[str] = None
    team_name: Optional[str] = None
    score: Optional[str] = None
    other_data: Dict[str, str] = Field(default_factory=dict)
    # Back-reference to Group.group_number
    group: Optional[int] = None

    @property
    def info_lines(self) -> List[str]:
        return [line.strip() for line in self.info.split("\n") if line.strip()]

    @property
    def headline(self) -> Optional[str]:
        lines = self.info_lines
        return lines[0] if lines else None

    @property
    def display_name(self) -> Optional[str]:
        lines = self.info_lines
        return lines[1] if len(lines) > 1 else None


class Group(BaseModel):
    """A head-to-head pairing of two table/team columns."""

    model_config = ConfigDict(frozen=True)

    group_number: int = Field(..., ge=1)
    table1: Optional[int] = None
    table2: Optional[int] = None
    teams: List[TeamSlot] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def tables_label(self) -> str:
        """'1 & 2' style label of the known tables, '' when none."""
        return " & ".join(
            str(table) for table in (self.table1, self.table2) if table is not None
        )


class Match(BaseModel):
    """Represents a single scheduled match."""

    model_config = ConfigDict(frozen=True)

    match_number: str
    time: Optional[str] = None
    team_info_raw: Optional[str] = None
    teams: List[TeamSlot] = Field(default_factory=list)
    groups: List[Group] = Field(default_factory=list)
    other_data: Dict[str, str] = Field(default_factory=dict)

    @computed_field  # type: ignore[misc]
    @property
    def label(self) -> str:
        """Dropdown style label, e.g. 'Match 3 - 9:30'."""
        if self.time:
            return f"Match {self.match_number} - {self.time}"
        return f"Match {self.match_number}"
