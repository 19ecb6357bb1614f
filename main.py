# main.py

import argparse
import asyncio
import getpass
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from core.account_manager import AccountManager
from core.dates import format_date
from core.errors import FieldVisitError
from core.services import open_services
from core.store import DocumentStore

load_dotenv()
console = Console()

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Field visit records from the command line.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", help="Prompted for when omitted.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("signup", help="Create an account.")
    sub.add_parser("recent", help="Show the most recent visits.")

    log = sub.add_parser("log", help="Browse every visit, newest first, one store page at a time.")
    log.add_argument("--page-size", type=int, default=10)

    visits = sub.add_parser("visits", help="List, filter and export visits.")
    visits.add_argument("--farmer", help="Farmer id to scope to.")
    visits.add_argument("--field", help="Field id to scope to.")
    visits.add_argument("--from", dest="date_from", help="First day, YYYY-MM-DD.")
    visits.add_argument("--to", dest="date_to", help="Last day, YYYY-MM-DD.")
    visits.add_argument("-q", "--search", default="", help="Free-text search.")
    visits.add_argument("--page", type=int, default=1, help="1-based page number.")
    visits.add_argument("--export", nargs="?", const="", metavar="DIR",
                        help="Write the shown page as CSV (default dir from settings).")
    return parser

def render_visits(title: str, views) -> Table:
    table = Table(title=title)
    table.add_column("Date", style="cyan")
    table.add_column("Farmer")
    table.add_column("Phone")
    table.add_column("Field")
    table.add_column("Address")
    table.add_column("Note", no_wrap=False)
    table.add_column("Recommendations", style="green")
    for view in views:
        table.add_row(
            format_date(view.visit.date),
            view.farmer_label,
            view.phone,
            view.field_label,
            view.address,
            view.visit.note,
            ", ".join(view.recommendation_names),
        )
    return table

async def browse_visits(services, page_size: int, ask_next=None) -> int:
    """Walks the flat visit listing with store cursors; returns how many visits were shown."""
    ask_next = ask_next or (lambda: Confirm.ask("Next page?", default=True))
    shown, cursor, number = 0, None, 1
    while True:
        page = await services.visits.list_visits_paged(page_size=page_size, cursor=cursor)
        references = await services.resolver.resolve(page.items)
        console.print(render_visits(f"Visits (page {number})", references.denormalize(page.items)))
        shown += len(page.items)
        if not page.has_more or not ask_next():
            return shown
        cursor, number = page.cursor, number + 1

async def sign_in(args) -> str:
    password = args.password or getpass.getpass("Password: ")
    store = DocumentStore()
    try:
        accounts = AccountManager(store)
        if args.command == "signup":
            user = await accounts.create_user(args.username, password)
            console.print(f"[bold green]Account '{user.username}' created.[/bold green]")
            return ""
        user = await accounts.authenticate_user(args.username, password)
    finally:
        await store.close()
    if not user:
        raise FieldVisitError("Invalid username or password.")
    return user.uid

async def run(args) -> int:
    uid = await sign_in(args)
    if not uid:
        return 0

    async with open_services(uid) as services:
        if args.command == "recent":
            state = await services.dashboard().load_recent()
            if state.error:
                console.print(f"[bold red]{state.error}[/bold red]")
                return 1
            console.print(render_visits("Recent visits", state.recent))
            return 0

        if args.command == "log":
            await browse_visits(services, max(args.page_size, 1))
            return 0

        page = services.visits_page()
        page.filters.farmer_id = args.farmer or None
        page.filters.field_id = args.field or None
        page.filters.date_from = args.date_from
        page.filters.date_to = args.date_to
        page.filters.search = args.search
        state = await page.load()
        if state.error:
            console.print(f"[bold red]{state.error}[/bold red]")
            return 1

        for _ in range(max(args.page, 1) - 1):
            if not page.next():
                break

        console.print(render_visits(
            f"Visits (page {page.page_index + 1}/{page.pager.page_count}, {len(state.visits)} matching)",
            page.page_items,
        ))

        if args.export is not None:
            path = page.export(args.export or None)
            if path:
                console.print(f"[bold green]Exported to {path}[/bold green]")
            else:
                console.print("[yellow]Nothing to export on this page.[/yellow]")
    return 0

if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(run(build_parser().parse_args())))
    except FieldVisitError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        sys.exit(1)
