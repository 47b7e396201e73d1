import sys
import asyncio
from typing import Optional

from schedule_viewer.logging.setup import setup_logging
from schedule_viewer.config.settings import settings

setup_logging()

from loguru import logger

from schedule_viewer.fetchers.base_fetcher import FetchError
from schedule_viewer.presentation.console import ConsoleRenderer
from schedule_viewer.session import ScheduleLoader, ViewerState
from schedule_viewer.storage.state_store import UserStateStore

from rich.console import Console
from rich.prompt import Prompt

HELP_TEXT = (
    "[bold]n[/bold] next • [bold]p[/bold] previous • [bold]<number>[/bold] jump to match • "
    "[bold]t [search][/bold] teams • [bold]r[/bold] reload • [bold]q[/bold] quit"
)


async def load(
    loader: ScheduleLoader,
    state: ViewerState,
    renderer: ConsoleRenderer,
    sheet_url: str,
    api_key: Optional[str],
) -> bool:
    """Runs a load and reports the outcome. Returns True on success."""
    with renderer.console.status("Loading schedule..."):
        try:
            await loader.load(state, sheet_url, api_key)
        except FetchError:
            renderer.render_status(state)
            return False
    renderer.render_status(state)
    return True


async def main() -> None:
    """Main entry point: load the schedule and page through matches."""
    logger.info("Starting Tournament Schedule Viewer")

    console = Console()
    renderer = ConsoleRenderer(console)
    store = UserStateStore(settings.state_file)
    saved = store.load()

    sheet_url = sys.argv[1] if len(sys.argv) > 1 else saved.sheet_url
    if not sheet_url:
        sheet_url = Prompt.ask("Google Sheet URL")

    api_key = saved.api_key
    if not (api_key or settings.google_sheets_api_key or settings.api_proxy_url):
        api_key = Prompt.ask("Google Sheets API key (blank for public CSV)", default="") or None

    loader = ScheduleLoader(store=store)
    state = ViewerState()
    await load(loader, state, renderer, sheet_url, api_key)

    renderer.render_current(state)
    console.print(HELP_TEXT)

    while True:
        command = Prompt.ask(">").strip()
        if command in ("q", "quit", "exit"):
            break
        if command == "n":
            if not state.navigate(1):
                console.print("Already at the last match.", style="dim")
            renderer.render_current(state)
        elif command == "p":
            if not state.navigate(-1):
                console.print("Already at the first match.", style="dim")
            renderer.render_current(state)
        elif command.isdigit():
            if state.select(int(command) - 1):
                renderer.render_current(state)
            else:
                console.print(f"No match at position {command}.", style="dim")
        elif command == "t" or command.startswith("t "):
            renderer.render_roster(state.search_teams(command[1:].strip()))
        elif command == "r":
            if await load(loader, state, renderer, sheet_url, api_key):
                renderer.render_current(state)
        else:
            console.print(HELP_TEXT)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
