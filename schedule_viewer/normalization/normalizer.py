from typing import Dict, List, Optional
import re

from loguru import logger
from pydantic import BaseModel, ConfigDict

from schedule_viewer.models.enums import LayoutKind
from schedule_viewer.models.layout import (
    GroupedTableLayout,
    Layout,
    LongPerTeamLayout,
    WidePerMatchLayout,
)
from schedule_viewer.models.match import Group, Match, TeamSlot
from schedule_viewer.models.table import RawTable, RowRecord
from schedule_viewer.normalization.detector import detect_layout

TABLE_LABEL_PATTERN = re.compile(r"table\s*(\d+)", re.IGNORECASE)
LEADING_NUMBER_PATTERN = re.compile(r"^(\d+)")
MATCH_NUMBER_PATTERN = re.compile(r"^\s*([+-]?\d+)")
DIGITS_PATTERN = re.compile(r"\d+")
TEAM_NUMBER_SUFFIX_PATTERN = re.compile(r"team\s*\d*$")

UNKNOWN_MATCH = "Unknown"


class NormalizationError(Exception):
    """Custom exception for data normalization errors."""

    pass


class ParsedTeamCell(BaseModel):
    """A grouped-table cell split into its table number and team info."""

    model_config = ConfigDict(frozen=True)

    table: Optional[int] = None
    info: str = ""
    raw: str = ""


def parse_team_cell(raw_value: str) -> Optional[ParsedTeamCell]:
    """Splits a 'Table N' / team-info cell.

    The first line names the table ("Table 5", or a bare number when more
    lines follow); the remaining lines are the team info with their line
    breaks kept. Without a table marker the whole cell is team info.
    Returns None for a blank cell.
    """
    if not raw_value or not raw_value.strip():
        return None

    lines = raw_value.split("\n")
    first_line = lines[0].strip()

    table_match = TABLE_LABEL_PATTERN.search(first_line)
    if table_match:
        return ParsedTeamCell(
            table=int(table_match.group(1)),
            info="\n".join(lines[1:]).strip(),
            raw=raw_value,
        )

    number_match = LEADING_NUMBER_PATTERN.match(first_line)
    if number_match and len(lines) > 1:
        return ParsedTeamCell(
            table=int(number_match.group(1)),
            info="\n".join(lines[1:]).strip(),
            raw=raw_value,
        )

    return ParsedTeamCell(table=None, info="\n".join(lines).strip(), raw=raw_value)


def match_sort_key(match_number: str) -> int:
    """Numeric value of a match number's leading integer; 0 when there is none."""
    found = MATCH_NUMBER_PATTERN.match(match_number or "")
    return int(found.group(1)) if found else 0


def sort_matches(matches: List[Match]) -> List[Match]:
    # sorted() is stable, so ties keep their source order
    return sorted(matches, key=lambda match: match_sort_key(match.match_number))


def _optional(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


class Normalizer:
    """Turns a RawTable of any supported layout into Match objects."""

    def normalize(self, table: RawTable, layout: Optional[Layout] = None) -> List[Match]:
        """Normalizes a schedule table into matches sorted by match number.

        Args:
                table: The parsed schedule tab.
                layout: A pre-detected layout; detected from the headers when omitted.

        Returns:
                A list of Match objects. Empty when no row qualifies.
        """
        if layout is None:
            layout = detect_layout(table.headers)

        logger.info(
            f"Normalizing {len(table.rows)} rows using layout {layout.kind.value}"
        )

        if layout.kind == LayoutKind.GROUPED_TABLE:
            matches = self._normalize_grouped_table(table, layout)
        elif layout.kind == LayoutKind.WIDE_PER_MATCH:
            matches = self._normalize_wide_per_match(table, layout)
        elif layout.kind == LayoutKind.LONG_PER_TEAM:
            matches = self._normalize_long_per_team(table, layout)
        elif layout.kind == LayoutKind.INFERRED:
            matches = self._normalize_inferred(table)
        else:
            raise NormalizationError(f"Unsupported layout: {layout.kind}")

        logger.info(f"Normalization complete. Produced {len(matches)} Match objects.")
        return sort_matches(matches)

    # --- Grouped table (Match, Time, Team Info, Table/Team x N) ---

    def _normalize_grouped_table(
        self, table: RawTable, layout: GroupedTableLayout
    ) -> List[Match]:
        matches: List[Match] = []
        pairs = layout.pairs
        if len(layout.table_team_indices) % 2:
            logger.debug(
                f"Ignoring unpaired Table/Team column at index {layout.table_team_indices[-1]}"
            )

        for row_index, row in enumerate(table.rows):
            match_number = row.at(layout.match_index).strip()
            if not match_number:
                logger.debug(f"Skipping row {row_index}: no match number.")
                continue

            time = row.at(layout.time_index).strip()
            team_info = row.at(layout.team_info_index).strip()

            teams: List[TeamSlot] = []
            groups: List[Group] = []
            for pair_index, (left_index, right_index) in enumerate(pairs):
                group_number = pair_index + 1
                group = self._build_group(
                    group_number, row.at(left_index), row.at(right_index)
                )
                if group is None:
                    continue
                groups.append(group)
                teams.extend(group.teams)

            logger.debug(
                f"Match {match_number}: {len(teams)} teams, {len(groups)} groups"
            )
            if not teams:
                logger.debug(f"Match {match_number} has no teams, skipping")
                continue

            matches.append(
                Match(
                    match_number=match_number,
                    time=time or None,
                    team_info_raw=team_info or None,
                    teams=teams,
                    groups=groups,
                )
            )

        return matches

    def _build_group(
        self, group_number: int, left_raw: str, right_raw: str
    ) -> Optional[Group]:
        left = parse_team_cell(left_raw)
        right = parse_team_cell(right_raw)

        slots = [
            TeamSlot(
                table=parsed.table,
                info=parsed.info,
                raw=parsed.raw,
                group=group_number,
            )
            for parsed in (left, right)
            if parsed is not None and parsed.info
        ]
        if not slots:
            return None

        return Group(
            group_number=group_number,
            table1=(left.table or None) if left else None,
            table2=(right.table or None) if right else None,
            teams=slots,
        )

    # --- One row per match (Match, Team 1, Team 2, ...) ---

    def _normalize_wide_per_match(
        self, table: RawTable, layout: WidePerMatchLayout
    ) -> List[Match]:
        matches: List[Match] = []
        headers = table.headers
        team_labels = {headers[index] for index in layout.team_indices}
        match_label = headers[layout.match_index]

        for row in table.rows:
            match_number = row.at(layout.match_index).strip()
            if not match_number:
                continue

            other_data: Dict[str, str] = {}
            for header in headers:
                if header != match_label and header not in team_labels:
                    other_data.setdefault(header, row.get(header))

            teams: List[TeamSlot] = []
            for team_index in layout.team_indices:
                raw_value = row.at(team_index)
                if not raw_value.strip():
                    continue
                teams.append(
                    TeamSlot(
                        raw=raw_value,
                        team_number=raw_value.strip(),
                        team_name=self._wide_team_name(headers, row, headers[team_index]),
                    )
                )

            if teams:
                matches.append(
                    Match(match_number=match_number, teams=teams, other_data=other_data)
                )

        return matches

    def _wide_team_name(
        self, headers: List[str], row: RowRecord, team_header: str
    ) -> Optional[str]:
        """Finds the name column of a team column ("Team 1" -> "Team 1 Name").

        The team column's first digit run (or its last character when it has
        no digits) must appear in a header that also mentions "name". The last
        such header wins.
        """
        team_header_lower = team_header.lower()
        digits = DIGITS_PATTERN.search(team_header_lower)
        token = digits.group(0) if digits else team_header_lower[-1:]

        team_name: Optional[str] = None
        for index, header in enumerate(headers):
            header_lower = header.lower()
            if token in header_lower and "name" in header_lower:
                team_name = _optional(row.at(index))
        return team_name

    # --- One row per team (Match, Team Number, Team Name, ...) ---

    def _normalize_long_per_team(
        self, table: RawTable, layout: LongPerTeamLayout
    ) -> List[Match]:
        headers = table.headers
        team_labels = {headers[index] for index in layout.team_indices}
        match_label = headers[layout.match_index]

        teams_by_match: Dict[str, List[TeamSlot]] = {}
        for row in table.rows:
            match_number = row.at(layout.match_index).strip() or UNKNOWN_MATCH
            match_teams = teams_by_match.setdefault(match_number, [])

            team_number: Optional[str] = None
            team_name: Optional[str] = None
            score: Optional[str] = None
            other_data: Dict[str, str] = {}

            for index in layout.team_indices:
                header = headers[index]
                header_lower = header.lower()
                value = row.at(index)
                if "team" in header_lower and (
                    "number" in header_lower
                    or "num" in header_lower
                    or "#" in header_lower
                    or TEAM_NUMBER_SUFFIX_PATTERN.search(header_lower)
                ):
                    team_number = _optional(value)
                elif "name" in header_lower and "match" not in header_lower:
                    team_name = _optional(value)
                elif "score" in header_lower or "points" in header_lower:
                    score = _optional(value)
                else:
                    other_data[header] = value

            for header in headers:
                if header not in team_labels and header != match_label:
                    other_data[header] = row.get(header)

            if team_number or team_name:
                match_teams.append(
                    TeamSlot(
                        team_number=team_number,
                        team_name=team_name,
                        score=score,
                        other_data=other_data,
                    )
                )

        return [
            Match(match_number=match_number, teams=teams)
            for match_number, teams in teams_by_match.items()
        ]

    # --- Fallback: no recognised columns ---

    def _normalize_inferred(self, table: RawTable) -> List[Match]:
        matches: List[Match] = []
        headers = table.headers

        for row_index, row in enumerate(table.rows):
            match_number = row.at(0).strip() or f"Match {row_index + 1}"

            team_number: Optional[str] = None
            team_name: Optional[str] = None
            other_data: Dict[str, str] = {}
            for index, header in enumerate(headers):
                value = row.at(index)
                if not value.strip():
                    continue
                if index == 0:
                    team_number = value.strip()
                elif index == 1:
                    team_name = value.strip()
                else:
                    other_data[header] = value

            if team_number or team_name:
                matches.append(
                    Match(
                        match_number=match_number,
                        teams=[
                            TeamSlot(
                                team_number=team_number,
                                team_name=team_name,
                                other_data=other_data,
                            )
                        ],
                    )
                )

        return matches
