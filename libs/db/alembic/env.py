# ruff: noqa: I001
"""Alembic environment for the statement store (``sa_transactions``).

The URL is resolved the same way the application resolves it
(``db.client.resolve_url``): ``DATABASE_URL`` wins, after loading the nearest
``.env`` without overriding the shell. ``sqlalchemy.url`` from an ini file is
the fallback.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from dotenv import find_dotenv, load_dotenv
from sqlalchemy import engine_from_config, pool

from db import metadata
from db.client import resolve_url


def _database_url() -> str:
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)
    if os.getenv("DATABASE_URL"):
        return resolve_url()
    return resolve_url(context.config.get_main_option("sqlalchemy.url") or None)


def _configure_kwargs(url: str) -> dict[str, object]:
    return {
        "target_metadata": metadata,
        "compare_type": True,
        # SQLite needs copy-and-move for ALTER TABLE.
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline(url: str) -> None:
    context.configure(url=url, literal_binds=True, **_configure_kwargs(url))
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(url: str) -> None:
    section = context.config.get_section(context.config.config_ini_section) or {}
    section["sqlalchemy.url"] = url
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(url))
        with context.begin_transaction():
            context.run_migrations()


if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

_url = _database_url()
if context.is_offline_mode():
    run_migrations_offline(_url)
else:
    run_migrations_online(_url)
