# src/erp_session/cli.py
"""
Command-line tool for inspecting and driving a stored ERP session.

    erp-session set-url https://erp.example.com
    erp-session login --api-key ... --app-key ... --api-secret ...
    erp-session status
    erp-session get method/employee_app.attendance_api.get_attendance_details
    erp-session refresh
    erp-session logout
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import httpx
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .auth_service import configure_base_url, describe_http_error, generate_token
from .client import AuthenticatedClient, create_client
from .config import SessionConfig
from .credential_store import JsonFileCredentialStore
from .errors import SessionError, mask_token
from .logging_setup import configure_logging
from .utils.paths import get_default_root, get_store_path

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="erp-session", description="ERP employee app session tool"
    )
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Credential file (default: ./erp_session.json).",
    )
    parser.add_argument("--verbose", action="store_true", help="Show debug logs.")
    parser.add_argument(
        "--log-dir", type=str, default=None, help="Also write log files under this directory."
    )

    sub = parser.add_subparsers(dest="command", required=True)

    set_url = sub.add_parser("set-url", help="Store the backend base URL.")
    set_url.add_argument("url")

    login = sub.add_parser("login", help="Generate and store access/refresh tokens.")
    login.add_argument("--api-key", default=os.getenv("ERP_API_KEY"))
    login.add_argument("--app-key", default=os.getenv("ERP_APP_KEY"))
    login.add_argument("--api-secret", default=os.getenv("ERP_API_SECRET"))

    sub.add_parser("refresh", help="Exchange the refresh token for a new access token.")
    sub.add_parser("status", help="Show the stored session.")
    sub.add_parser("logout", help="Clear stored tokens.")

    get = sub.add_parser("get", help="GET a path relative to <base>/api.")
    get.add_argument("path")

    return parser


async def _show_status(client: AuthenticatedClient) -> None:
    tokens = client.session.tokens
    pair = await tokens.load_tokens()
    base_url = await tokens.get_base_url()

    table = Table(show_header=False, box=None)
    table.add_row("Base URL", base_url or "[red]not set[/red]")
    table.add_row("Access token", mask_token(pair.access))
    table.add_row("Refresh token", mask_token(pair.refresh))
    console.print(Panel(table, title="ERP session", expand=False))


async def _run(args: argparse.Namespace, client: AuthenticatedClient) -> None:
    session = client.session

    if args.command == "set-url":
        base_url = await configure_base_url(session, args.url)
        console.print(f"[green]Base URL stored:[/green] {base_url}")

    elif args.command == "login":
        missing = [
            flag
            for flag, value in (
                ("--api-key", args.api_key),
                ("--app-key", args.app_key),
                ("--api-secret", args.api_secret),
            )
            if not value
        ]
        if missing:
            raise SessionError(f"Missing login options: {', '.join(missing)}")
        pair = await generate_token(client, args.api_key, args.app_key, args.api_secret)
        console.print(f"[green]Logged in.[/green] Access token {mask_token(pair.access)}")

    elif args.command == "refresh":
        token = await session.coordinator.refresh_access_token()
        console.print(f"[green]Token refreshed.[/green] Access token {mask_token(token)}")

    elif args.command == "status":
        await _show_status(client)

    elif args.command == "logout":
        await session.sign_out()
        console.print("[yellow]Signed out.[/yellow]")

    elif args.command == "get":
        response = await client.get(args.path)
        try:
            console.print_json(json.dumps(response.json()))
        except ValueError:
            console.print(response.text)


async def _main_async(args: argparse.Namespace) -> int:
    store_path = Path(args.store) if args.store else get_store_path()
    client = create_client(
        JsonFileCredentialStore(store_path), config=SessionConfig.from_env()
    )
    try:
        await _run(args, client)
        return 0
    except SessionError as e:
        console.print(f"[red]{e.message}[/red]")
        return 1
    except httpx.HTTPError as e:
        console.print(f"[red]Request failed: {describe_http_error(e)}[/red]")
        return 1
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    finally:
        await client.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(get_default_root() / ".env")
    args = build_parser().parse_args(argv)
    configure_logging(
        logging.DEBUG if args.verbose else logging.WARNING, log_root=args.log_dir
    )
    return asyncio.run(_main_async(args))


if __name__ == "__main__":
    sys.exit(main())
