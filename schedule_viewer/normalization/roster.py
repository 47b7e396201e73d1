from typing import Dict, List, Optional, Sequence

from loguru import logger

from schedule_viewer.models.table import RawTable
from schedule_viewer.models.team import TeamRosterEntry
from schedule_viewer.normalization.detector import find_column

TEAM_NUMBER_ALIASES = ["team number", "teamnumber", "team #", "team_num", "team"]
TEAM_NAME_ALIASES = ["team name", "teamname", "name"]
# "organizatino" is a misspelling found in real roster tabs
ORGANIZATION_ALIASES = ["organization", "organizatino", "org", "school", "institution"]
CITY_ALIASES = ["city"]


def normalize_roster(table: RawTable) -> List[TeamRosterEntry]:
    """Builds roster entries from the team list tab, keeping row order."""
    team_number_index = find_column(table.headers, TEAM_NUMBER_ALIASES)
    team_name_index = find_column(table.headers, TEAM_NAME_ALIASES)
    organization_index = find_column(table.headers, ORGANIZATION_ALIASES)
    city_index = find_column(table.headers, CITY_ALIASES)

    logger.debug(
        f"Roster columns: number={team_number_index}, name={team_name_index}, "
        f"organization={organization_index}, city={city_index}"
    )

    def value(row, index: Optional[int]) -> Optional[str]:
        if index is None:
            return None
        return row.at(index).strip() or None

    teams: List[TeamRosterEntry] = []
    for position, row in enumerate(table.rows, start=1):
        team_number = value(row, team_number_index)
        team_name = value(row, team_name_index)
        if not (team_number or team_name):
            continue

        other_data: Dict[str, str] = {}
        city = value(row, city_index)
        if city:
            other_data["city"] = city

        teams.append(
            TeamRosterEntry(
                id=position,
                team_number=team_number,
                team_name=team_name,
                organization=value(row, organization_index),
                other_data=other_data,
            )
        )

    logger.info(f"Roster normalized: {len(teams)} teams from {len(table.rows)} rows")
    return teams


def filter_roster(
    teams: Sequence[TeamRosterEntry], search_term: str
) -> List[TeamRosterEntry]:
    """Case-insensitive substring search over number, name, organization and extra data."""
    if not search_term or not search_term.strip():
        return list(teams)

    term = search_term.lower()

    def matches(team: TeamRosterEntry) -> bool:
        fields = [team.team_number, team.team_name, team.organization]
        fields.extend(team.other_data.values())
        return any(field and term in str(field).lower() for field in fields)

    return [team for team in teams if matches(team)]
