"""Tests for schedule normalization across the supported layouts."""

from __future__ import annotations

import pytest

from conftest import GROUPED_VALUES
from schedule_viewer.models.layout import InferredLayout
from schedule_viewer.normalization.normalizer import (
    Normalizer,
    match_sort_key,
    parse_team_cell,
)
from schedule_viewer.parsing.csv_parser import parse_csv, table_from_values

SCENARIO_CSV = (
    "Match,Time,Team Info,Table/Team,Table/Team\n"
    "1,9:00,,Table 1\nTeam 100\nAcme,Table 2\nTeam 200\nBeta\n"
)


@pytest.fixture
def normalizer() -> Normalizer:
    return Normalizer()


# ─── Cell parsing ────────────────────────────────────────────────────────────


class TestParseTeamCell:
    def test_table_prefix(self) -> None:
        parsed = parse_team_cell("Table 5\nTeam 12\nSpringfield")
        assert parsed.table == 5
        assert parsed.info == "Team 12\nSpringfield"
        assert parsed.raw == "Table 5\nTeam 12\nSpringfield"

    def test_single_number_line_is_info(self) -> None:
        parsed = parse_team_cell("42")
        assert parsed.table is None
        assert parsed.info == "42"

    def test_leading_number_with_more_lines(self) -> None:
        parsed = parse_team_cell("7\n1234\nRobo Rangers")
        assert parsed.table == 7
        assert parsed.info == "1234\nRobo Rangers"

    def test_table_marker_case_insensitive(self) -> None:
        parsed = parse_team_cell("  TABLE12  \n 100 \nAcme")
        assert parsed.table == 12
        assert parsed.info == "100 \nAcme"

    def test_no_table_marker(self) -> None:
        parsed = parse_team_cell("Team 100\nAcme\n")
        assert parsed.table is None
        assert parsed.info == "Team 100\nAcme"

    def test_table_only_has_empty_info(self) -> None:
        parsed = parse_team_cell("Table 3")
        assert parsed.table == 3
        assert parsed.info == ""

    @pytest.mark.parametrize("raw", ["", "   ", "\n \n"])
    def test_blank(self, raw) -> None:
        assert parse_team_cell(raw) is None


class TestMatchSortKey:
    @pytest.mark.parametrize(
        "value, expected",
        [("3", 3), (" 10", 10), ("12a", 12), ("-2", -2), ("abc", 0), ("", 0), ("Match 4", 0)],
    )
    def test_values(self, value, expected) -> None:
        assert match_sort_key(value) == expected


# ─── Grouped table ───────────────────────────────────────────────────────────


class TestGroupedTable:
    def test_scenario(self, normalizer) -> None:
        matches = normalizer.normalize(parse_csv(SCENARIO_CSV))
        assert len(matches) == 1
        match = matches[0]
        assert match.match_number == "1"
        assert match.time == "9:00"
        assert match.team_info_raw is None
        assert len(match.groups) == 1
        group = match.groups[0]
        assert (group.group_number, group.table1, group.table2) == (1, 1, 2)
        assert [team.info for team in group.teams] == ["Team 100\nAcme", "Team 200\nBeta"]
        assert [team.group for team in match.teams] == [1, 1]

    def test_duplicate_headers_pair_positionally(self, normalizer) -> None:
        table = table_from_values(
            [
                ["Match", "Table/Team", "Table/Team", "Table/Team", "Table/Team"],
                ["1", "Table 1\nA", "Table 2\nB", "Table 3\nC", "Table 4\nD"],
            ]
        )
        match = normalizer.normalize(table)[0]
        assert len(match.groups) == 2
        assert [(g.table1, g.table2) for g in match.groups] == [(1, 2), (3, 4)]
        assert [team.info for team in match.teams] == ["A", "B", "C", "D"]

    def test_sorted_and_filtered(self, normalizer) -> None:
        matches = normalizer.normalize(table_from_values(GROUPED_VALUES))
        assert [m.match_number for m in matches] == ["1", "2"]
        first = matches[0]
        assert first.team_info_raw == "Practice"
        assert [g.group_number for g in first.groups] == [1, 2]
        # Second group has only its left side filled
        assert first.groups[1].table1 == 3
        assert first.groups[1].table2 is None
        assert len(first.groups[1].teams) == 1
        assert first.teams[0].headline == "100"
        assert first.teams[0].display_name == "Acme"

    def test_group_numbers_follow_pair_position(self, normalizer) -> None:
        table = table_from_values(
            [
                ["Match", "Table/Team", "Table/Team", "Table/Team", "Table/Team"],
                ["5", "", "", "Table 7\nTeam 700", ""],
            ]
        )
        match = normalizer.normalize(table)[0]
        assert [g.group_number for g in match.groups] == [2]
        assert match.teams[0].group == 2

    def test_side_with_table_but_no_info_adds_no_slot(self, normalizer) -> None:
        table = table_from_values(
            [["Match", "Table/Team", "Table/Team"], ["1", "Table 1", "Table 2\nTeam 200"]]
        )
        group = normalizer.normalize(table)[0].groups[0]
        assert group.table1 == 1
        assert [team.info for team in group.teams] == ["Team 200"]

    def test_rows_without_match_number_or_teams_dropped(self, normalizer) -> None:
        table = table_from_values(
            [
                ["Match", "Time", "Table/Team", "Table/Team"],
                ["  ", "9:00", "Table 1\nA", "Table 2\nB"],
                ["2", "9:10", "Table 1", ""],
                ["3", "9:20", "Table 1\nC", ""],
            ]
        )
        matches = normalizer.normalize(table)
        assert [m.match_number for m in matches] == ["3"]

    def test_single_table_team_column_yields_nothing(self, normalizer) -> None:
        table = table_from_values([["Match", "Table/Team"], ["1", "Table 1\nA"]])
        assert normalizer.normalize(table) == []

    def test_numeric_sort_with_non_numeric_as_zero(self, normalizer) -> None:
        rows = [["Match", "Table/Team", "Table/Team"]]
        rows += [[number, "Table 1\nA", ""] for number in ["3", "1", "10", "abc", "0"]]
        matches = normalizer.normalize(table_from_values(rows))
        assert [m.match_number for m in matches] == ["abc", "0", "1", "3", "10"]

    def test_idempotent(self, normalizer) -> None:
        table = table_from_values(GROUPED_VALUES)
        assert normalizer.normalize(table) == normalizer.normalize(table)


# ─── Wide per match ──────────────────────────────────────────────────────────


class TestWidePerMatch:
    def test_teams_and_names(self, normalizer) -> None:
        table = table_from_values(
            [
                ["Match", "Team 1", "Team 2", "Team 1 Name", "Team 2 Name", "Field"],
                ["2", "200", "201", "Beta", "Beta Two", "B"],
                ["1", " 100 ", "", "Acme", "", "A"],
                ["", "300", "301", "", "", "C"],
            ]
        )
        matches = normalizer.normalize(table)
        assert [m.match_number for m in matches] == ["1", "2"]
        first, second = matches
        assert [(t.team_number, t.team_name) for t in first.teams] == [("100", "Acme")]
        assert [(t.team_number, t.team_name) for t in second.teams] == [
            ("200", "Beta"),
            ("201", "Beta Two"),
        ]
        assert first.other_data == {"Team 1 Name": "Acme", "Team 2 Name": "", "Field": "A"}

    def test_lettered_team_columns_use_last_character(self, normalizer) -> None:
        table = table_from_values(
            [
                ["Match", "Team A", "Team B", "Name B"],
                ["1", "100", "200", "Bravo"],
            ]
        )
        teams = normalizer.normalize(table)[0].teams
        # "a" also appears in "name b", so both teams pick up the same name
        assert [(t.team_number, t.team_name) for t in teams] == [
            ("100", "Bravo"),
            ("200", "Bravo"),
        ]

    def test_match_without_teams_dropped(self, normalizer) -> None:
        table = table_from_values([["Match", "Team 1"], ["1", " "], ["2", "100"]])
        assert [m.match_number for m in normalizer.normalize(table)] == ["2"]


# ─── Long per team ───────────────────────────────────────────────────────────


class TestLongPerTeam:
    def test_rows_grouped_by_match(self, normalizer) -> None:
        table = table_from_values(
            [
                ["Match", "Team Number", "Team Name", "Score", "Coach", "Field"],
                ["2", "300", "Gamma", "12", "Cy", "B"],
                ["1", "100", "Acme", "", "Al", "A"],
                ["2", "", "", "", "Nobody", "B"],
                ["1", "200", "Beta", "30", "Bo", "A"],
                ["", "400", "Delta", "", "", ""],
            ]
        )
        matches = normalizer.normalize(table)
        assert [m.match_number for m in matches] == ["Unknown", "1", "2"]
        by_number = {m.match_number: m for m in matches}
        assert [t.team_number for t in by_number["1"].teams] == ["100", "200"]
        assert [t.team_number for t in by_number["2"].teams] == ["300"]
        acme = by_number["1"].teams[0]
        assert acme.team_name == "Acme"
        assert acme.score is None
        assert acme.other_data == {"Coach": "Al", "Field": "A"}
        assert by_number["1"].teams[1].score == "30"

    def test_short_csv_rows_keep_every_team(self, normalizer) -> None:
        table = parse_csv("Match,Team Number,Team Name,Score\n1,100,Acme\n1,200,Beta\n2,300,Gamma,5\n")
        matches = normalizer.normalize(table)
        assert [(m.match_number, [t.team_name for t in m.teams]) for m in matches] == [
            ("1", ["Acme", "Beta"]),
            ("2", ["Gamma"]),
        ]
        assert matches[0].teams[0].score is None

    def test_team_hash_column_is_team_number(self, normalizer) -> None:
        table = table_from_values([["Match", "Team #", "Points"], ["1", "55", "210"]])
        team = normalizer.normalize(table)[0].teams[0]
        assert team.team_number == "55"
        assert team.score == "210"


# ─── Inferred fallback ───────────────────────────────────────────────────────


class TestInferred:
    def test_column_order(self, normalizer) -> None:
        table = table_from_values(
            [
                ["Id", "Label", "Notes"],
                ["100", "Acme", "first"],
                ["", "Beta", ""],
            ]
        )
        matches = normalizer.normalize(table, InferredLayout())
        assert [m.match_number for m in matches] == ["Match 2", "100"]
        acme = matches[1].teams[0]
        assert (acme.team_number, acme.team_name) == ("100", "Acme")
        assert acme.other_data == {"Notes": "first"}
        assert matches[0].teams[0].team_number is None
        assert matches[0].teams[0].team_name == "Beta"
