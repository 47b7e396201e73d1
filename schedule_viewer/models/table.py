from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RowRecord(BaseModel):
    """A single data row, addressable by label and by column position.

    ``by_label`` keeps the first value seen for each header label. When labels
    repeat, later columns are only reachable through ``positional``.
    """

    model_config = ConfigDict(frozen=True)

    by_label: Dict[str, str] = Field(default_factory=dict)
    positional: List[str] = Field(default_factory=list)

    def at(self, index: Optional[int]) -> str:
        """Value at a column position, '' when the position is missing."""
        if index is None or index < 0 or index >= len(self.positional):
            return ""
        return self.positional[index]

    def get(self, label: str, default: str = "") -> str:
        return self.by_label.get(label, default)

    def is_blank(self) -> bool:
        return not any(value.strip() for value in self.positional)


class RawTable(BaseModel):
    """Header row plus data rows of one spreadsheet tab."""

    model_config = ConfigDict(frozen=True)

    headers: List[str] = Field(default_factory=list)
    rows: List[RowRecord] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def has_duplicate_headers(self) -> bool:
        return len(set(self.headers)) != len(self.headers)

    def sample_keys(self) -> List[str]:
        """Labels of the first row, used in diagnostics."""
        if not self.rows:
            return []
        return list(self.rows[0].by_label.keys())
