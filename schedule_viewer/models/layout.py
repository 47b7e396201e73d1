from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .enums import LayoutKind


class GroupedTableLayout(BaseModel):
    """Match row with paired Table/Team columns (possibly all sharing one label)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[LayoutKind.GROUPED_TABLE] = LayoutKind.GROUPED_TABLE
    match_index: int
    time_index: Optional[int] = None
    team_info_index: Optional[int] = None
    table_team_indices: List[int] = Field(default_factory=list)

    @property
    def pairs(self) -> List[tuple[int, int]]:
        """Column index pairs in header order; a trailing unpaired column is dropped."""
        indices = self.table_team_indices
        return [(indices[i], indices[i + 1]) for i in range(0, len(indices) - 1, 2)]


class WidePerMatchLayout(BaseModel):
    """One row per match with Team 1, Team 2, ... columns."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[LayoutKind.WIDE_PER_MATCH] = LayoutKind.WIDE_PER_MATCH
    match_index: int
    team_indices: List[int] = Field(default_factory=list)


class LongPerTeamLayout(BaseModel):
    """One row per team, rows sharing a match number form one match."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[LayoutKind.LONG_PER_TEAM] = LayoutKind.LONG_PER_TEAM
    match_index: int
    team_indices: List[int] = Field(default_factory=list)


class InferredLayout(BaseModel):
    """No recognised columns: column 0 is the team number, column 1 the name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[LayoutKind.INFERRED] = LayoutKind.INFERRED


Layout = Annotated[
    Union[GroupedTableLayout, WidePerMatchLayout, LongPerTeamLayout, InferredLayout],
    Field(discriminator="kind"),
]
