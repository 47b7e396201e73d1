from typing import List, Optional, Sequence

from rich.columns import Columns
from rich.console import Console, Group as RenderGroup
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from schedule_viewer.models.match import Group, Match, TeamSlot
from schedule_viewer.models.team import TeamRosterEntry
from schedule_viewer.session import ViewerState


def format_team_info(team: TeamSlot) -> Text:
    """Team info with the identifier in bold and the display name highlighted."""
    lines = team.info_lines
    if not lines:
        return Text("No team info", style="dim")

    text = Text()
    for index, line in enumerate(lines):
        if index:
            text.append("\n")
        if index == 0:
            text.append(line, style="bold")
        elif index == 1:
            text.append(line, style="bold cyan")
        else:
            text.append(line)
    return text


class ConsoleRenderer:
    """Renders viewer state to a terminal with rich."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _match_header(self, match: Match) -> str:
        parts: List[str] = []
        if match.time:
            parts.append(f"Time: {match.time}")
        summary = f"{len(match.teams)} Team(s)"
        if match.groups:
            summary += f" • {len(match.groups)} Group(s)"
        parts.append(summary)
        return " • ".join(parts)

    def _group_panel(self, group: Group) -> Panel:
        title = f"Group {group.group_number}"
        if group.tables_label:
            title += f" (Tables {group.tables_label})"

        body = []
        for team in group.teams:
            prefix = Text(f"Table {team.table}\n", style="dim") if team.table else Text()
            body.append(Panel(prefix + format_team_info(team), expand=True))
        border = "magenta" if group.group_number == 2 else "blue"
        return Panel(RenderGroup(*body), title=title, border_style=border)

    def _team_table(self, index: int, team: TeamSlot) -> Panel:
        table = Table.grid(padding=(0, 1))
        table.add_column(style="bold")
        table.add_column()
        if team.table:
            table.add_row("Table:", str(team.table))
        if team.team_name:
            table.add_row("Team Name:", team.team_name)
        if team.team_number and not team.team_name:
            table.add_row("Team Number:", team.team_number)
        if team.score:
            table.add_row("Score:", team.score)
        for key, value in team.other_data.items():
            if value and value.strip():
                table.add_row(f"{key}:", value)

        title = f"Team {index + 1}"
        if team.team_number:
            title += f" - {team.team_number}"
        return Panel(table, title=title)

    def render_match(self, match: Match, position: int, total: int) -> None:
        """Prints one match; position is 0-based."""
        self.console.rule(f"Match {match.match_number}  ({position + 1} of {total})")
        self.console.print(self._match_header(match), style="italic")

        if match.groups:
            self.console.print(Columns([self._group_panel(g) for g in match.groups]))
            return

        self.console.print(
            Columns([self._team_table(i, team) for i, team in enumerate(match.teams)])
        )
        details = {k: v for k, v in match.other_data.items() if v and v.strip()}
        if details:
            grid = Table.grid(padding=(0, 1))
            grid.add_column(style="bold")
            grid.add_column()
            for key, value in details.items():
                grid.add_row(f"{key}:", value)
            self.console.print(Panel(grid, title="Match Details"))

    def render_roster(self, teams: Sequence[TeamRosterEntry]) -> None:
        if not teams:
            self.console.print("No teams found.", style="dim")
            return

        table = Table(title="Teams")
        table.add_column("Team", style="bold")
        table.add_column("Team Name")
        table.add_column("Organization")
        table.add_column("City")
        for team in teams:
            table.add_row(
                team.title,
                team.team_name or "",
                team.organization or "",
                team.city or "",
            )
        self.console.print(table)

    def render_status(self, state: ViewerState) -> None:
        if state.last_error:
            self.console.print(Panel(state.last_error, title="Error", border_style="red"))
        status = state.status_line()
        if status:
            loaded = state.loaded_at.astimezone().strftime("%b %d, %Y %I:%M:%S %p")
            self.console.print(f"[green]✓ {status}[/green]\nLast loaded: {loaded}")

    def render_current(self, state: ViewerState) -> None:
        match = state.current_match
        if match is None:
            self.console.print("No matches loaded.", style="dim")
            return
        self.render_match(match, state.current_index, len(state.matches))
