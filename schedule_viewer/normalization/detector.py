import re
from typing import List, Optional, Sequence

from loguru import logger

from schedule_viewer.models.layout import (
    GroupedTableLayout,
    InferredLayout,
    Layout,
    LongPerTeamLayout,
    WidePerMatchLayout,
)

MATCH_ALIASES = [
    "match",
    "match number",
    "match #",
    "match_num",
    "match num",
    "matchnumber",
]
TIME_ALIASES = ["time"]
TEAM_INFO_ALIASES = ["team info", "teaminfo", "team information"]

TABLE_TEAM_PATTERN = re.compile(r"^table\s*/\s*team$", re.IGNORECASE)
TEAM_NUMBERED_PATTERN = re.compile(r"^team\s*\d+$")
TEAM_LETTERED_PATTERN = re.compile(r"^team\s*[a-z]$", re.IGNORECASE)
WIDE_TEAM_SPELLINGS = {"team1", "team2", "team3", "team 1", "team 2", "team 3"}
TEAM_KEYWORDS = ["team", "name", "score", "points"]


def _normalize_header(header: str) -> str:
    return header.lower().strip()


def find_column(headers: Sequence[str], aliases: Sequence[str]) -> Optional[int]:
    """Returns the index of the first header equal to an alias, aliases tried in order.

    Comparison is case-insensitive and ignores surrounding whitespace.
    """
    lower_headers = [_normalize_header(header) for header in headers]
    for alias in aliases:
        try:
            return lower_headers.index(alias.lower())
        except ValueError:
            continue
    return None


def is_table_team_header(header: str) -> bool:
    lower = _normalize_header(header)
    return ("table" in lower and "team" in lower) or bool(
        TABLE_TEAM_PATTERN.match(lower)
    )


def is_wide_team_header(header: str) -> bool:
    lower = _normalize_header(header)
    return (
        bool(TEAM_NUMBERED_PATTERN.match(lower))
        or bool(TEAM_LETTERED_PATTERN.match(lower))
        or lower in WIDE_TEAM_SPELLINGS
    )


def is_team_keyword_header(header: str) -> bool:
    lower = header.lower()
    if "match" in lower:
        return False
    return any(keyword in lower for keyword in TEAM_KEYWORDS)


def detect_layout(headers: Sequence[str]) -> Layout:
    """Classifies a header row into one of the known schedule layouts.

    Checks run in order and the first hit wins: grouped table, wide per match,
    long per team, then the inferred fallback.
    """
    match_index = find_column(headers, MATCH_ALIASES)
    time_index = find_column(headers, TIME_ALIASES)
    team_info_index = find_column(headers, TEAM_INFO_ALIASES)

    table_team_indices: List[int] = [
        index for index, header in enumerate(headers) if is_table_team_header(header)
    ]

    logger.debug(
        f"Column detection: headers={list(headers)}, match={match_index}, time={time_index}, "
        f"team_info={team_info_index}, table_team={table_team_indices}"
    )

    if match_index is not None and table_team_indices:
        logger.info(
            f"Detected grouped table layout with {len(table_team_indices)} Table/Team columns"
        )
        return GroupedTableLayout(
            match_index=match_index,
            time_index=time_index,
            team_info_index=team_info_index,
            table_team_indices=table_team_indices,
        )

    wide_team_indices = [
        index for index, header in enumerate(headers) if is_wide_team_header(header)
    ]
    if match_index is not None and wide_team_indices:
        logger.info(
            f"Detected one-row-per-match layout with {len(wide_team_indices)} team columns"
        )
        return WidePerMatchLayout(
            match_index=match_index, team_indices=wide_team_indices
        )

    team_indices = [
        index for index, header in enumerate(headers) if is_team_keyword_header(header)
    ]
    if match_index is not None and team_indices:
        logger.info(
            f"Detected one-row-per-team layout with {len(team_indices)} team columns"
        )
        return LongPerTeamLayout(match_index=match_index, team_indices=team_indices)

    logger.warning(
        "No match/team columns recognised; inferring structure from column order."
    )
    return InferredLayout()
