from enum import Enum


class LayoutKind(str, Enum):
    GROUPED_TABLE = "GROUPED_TABLE"  # Match, Time, Team Info, Table/Team x N
    WIDE_PER_MATCH = "WIDE_PER_MATCH"  # Match, Team 1, Team 2, ...
    LONG_PER_TEAM = "LONG_PER_TEAM"  # Match, Team Number, Team Name, ...
    INFERRED = "INFERRED"  # No recognised match/team columns


class FetchSource(str, Enum):
    PUBLIC_CSV = "PublicCsv"
    SHEETS_API = "SheetsApi"
    RELAY = "Relay"


class StoredField(str, Enum):
    SHEET_URL = "sheet_url"
    API_KEY = "api_key"
    LAST_LOAD = "last_load"
