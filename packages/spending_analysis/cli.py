# ruff: noqa: I001
"""CLI for the ``spending_analysis`` package.

A Typer app with one command per workflow: ``normalize`` (print transactions
parsed from a statement), ``upload`` (normalize and store statements for a
user), ``periods`` (list stored periods), ``summary`` (dashboard summary as
JSON) and ``serve`` (run the HTTP app). The root callback loads ``.env`` from
the working directory with ``python-dotenv`` and configures logging before any
command runs.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from typer.models import OptionInfo

from .config import NORMALIZER_STRATEGIES, Settings
from .logging_setup import configure_logging
from .session import DashboardSession, UserProfile


def _settings(strategy: str | None) -> Settings:
    try:
        settings = Settings.from_env()
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    if strategy is None:
        return settings
    if strategy not in NORMALIZER_STRATEGIES:
        typer.echo(f"Error: unknown strategy {strategy!r} (expected csv or llm)", err=True)
        raise typer.Exit(1)
    return Settings(
        normalizer=strategy,
        anthropic_api_key=settings.anthropic_api_key,
        model=settings.model,
        max_tokens=settings.max_tokens,
        currency_prefix=settings.currency_prefix,
        database_url=settings.database_url,
    )


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        typer.echo(f"Error: File not found: {path}", err=True)
        raise typer.Exit(1) from e
    except PermissionError as e:
        typer.echo(f"Error: Permission denied: {path}", err=True)
        raise typer.Exit(1) from e


def _session_for(user_id: str) -> DashboardSession:
    return DashboardSession(user=UserProfile(uid=user_id, email="", name=""))


console = Console()


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Normalize bank statements and summarize spending by period.",
)


CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a bank-statement CSV export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # reported by the handler with a friendlier message
)
STRATEGY_OPTION: OptionInfo = typer.Option(
    ..., "--strategy", help="Normalizer strategy: csv or llm (defaults to config)."
)
USER_OPTION: OptionInfo = typer.Option(..., "--user-id", help="Owning user identifier.")
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    ..., "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


@app.command("normalize")
def normalize_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    strategy: Annotated[str | None, STRATEGY_OPTION] = None,
) -> None:
    """Print the transactions parsed from one statement as JSON."""

    from .normalizers import get_normalizer

    settings = _settings(strategy)
    text = _read_text(csv_path)
    try:
        transactions = get_normalizer(settings).normalize(text)
    except Exception as e:  # noqa: BLE001 - surface any failure as exit 1
        typer.echo(f"Error: failed to normalize {csv_path}: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo(json.dumps([t.to_dict() for t in transactions], ensure_ascii=False, indent=2))


@app.command("upload")
def upload_cmd(
    paths: Annotated[list[Path], typer.Argument(help="Statement CSV files (YYYY-MM in the name).")],
    user_id: Annotated[str, USER_OPTION],
    strategy: Annotated[str | None, STRATEGY_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
    replace: bool = typer.Option(False, help="Replace rows already stored for the same period."),
) -> None:
    """Normalize statements and store them for a user."""

    from .normalizers import get_normalizer
    from .uploads import upload_statements

    settings = _settings(strategy)
    state = _session_for(user_id)
    files = [(p.name, _read_text(p)) for p in paths]
    try:
        with state.operation():
            results = upload_statements(
                files,
                user_id=state.require_user().uid,
                normalizer=get_normalizer(settings),
                database_url=database_url or settings.database_url,
                replace=replace,
            )
    except Exception as e:  # noqa: BLE001
        typer.echo(f"Error: upload failed: {state.error}", err=True)
        raise typer.Exit(1) from e
    table = Table(title="Uploaded statements")
    table.add_column("File")
    table.add_column("Period")
    table.add_column("Transactions", justify="right")
    for r in results:
        table.add_row(r.filename, r.period, str(r.count))
    console.print(table)


def _load(user_id: str, database_url: str | None) -> dict[str, list]:
    from db.client import session_scope

    from .persistence import load_transactions_by_period

    try:
        with session_scope(database_url=database_url) as session:
            return load_transactions_by_period(session, user_id=user_id)
    except RuntimeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


@app.command("periods")
def periods_cmd(
    user_id: Annotated[str, USER_OPTION],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """List stored periods grouped by year, newest year first."""

    from .periods import years_index

    by_period = _load(user_id, database_url or _settings(None).database_url)
    index = years_index(by_period)
    if not index:
        console.print("[yellow]No stored periods.[/yellow]")
        return
    for year, keys in index.items():
        console.print(f"[cyan]{year}[/cyan]: {' '.join(keys)}")


@app.command("summary")
def summary_cmd(
    user_id: Annotated[str, USER_OPTION],
    period: Annotated[
        list[str] | None,
        typer.Option("--period", help="Period to include (repeatable); default: latest four."),
    ] = None,
    locale: str = typer.Option("en", help="Period label locale: en or pt."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Print the dashboard summary for a user's stored transactions as JSON."""

    from .aggregation import build_dashboard_summary
    from .periods import default_selection

    state = _session_for(user_id)
    with state.operation():
        url = database_url or _settings(None).database_url
        by_period = _load(state.require_user().uid, url)
        selected = list(period) if period else default_selection(by_period)
        try:
            result = build_dashboard_summary(by_period, selected, locale=locale)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from e
    typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
) -> None:
    """Run the HTTP app with uvicorn."""

    import uvicorn

    from .server import create_app

    uvicorn.run(create_app(), host=host, port=port)


@app.callback()
def _root() -> None:
    """Load ``.env`` (without overriding the environment) and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:
    app(prog_name="spending-analysis")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
