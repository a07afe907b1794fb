# ruff: noqa: I001
"""CLI for the ``auto_categorize`` package.

This module exposes callable command handlers (``cmd_auto_categorize``,
``cmd_list_rules``, ...) and a Typer-based console interface. Environment
variables (notably ``DATABASE_URL``) are loaded from a local ``.env`` using
``python-dotenv`` before delegating to command logic. Business logic lives in
``auto_categorize.api`` and ``auto_categorize.persistence``.

Handlers return a process exit code and print ``Error: ...`` to stderr on
failure; the Typer wrappers turn non-zero codes into ``typer.Exit``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from dotenv import load_dotenv

from .logging_setup import configure_logging


# ---- Command handlers ----------------------------------------------------------


def cmd_auto_categorize(
    account_id: str,
    *,
    database_url: str | None = None,
    history_limit: int | None = None,
) -> int:
    """Categorize pending transactions for ``account_id`` and print the summary."""

    from .api import auto_categorize_account
    from .errors import AutoCategorizeError

    try:
        summary = auto_categorize_account(
            account_id,
            database_url=database_url,
            history_limit=history_limit,
        )
    except AutoCategorizeError as e:
        print(f"Error: auto-categorization failed: {e}", file=sys.stderr)
        return 1
    except (RuntimeError, ValueError) as e:
        # Configuration problems (e.g. DATABASE_URL unset, bad history limit)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(summary.message)
    print(f"Updated {summary.updated} of {summary.total} pending transactions")
    return 0


def cmd_list_rules(account_id: str, *, database_url: str | None = None) -> int:
    from db.client import session_scope
    from .persistence import list_rules

    try:
        with session_scope(database_url=database_url) as session:
            rules = list_rules(session, account_id=account_id)
    except Exception as e:
        print(f"Error: failed to list rules: {e}", file=sys.stderr)
        return 1

    for r in rules:
        origin = "default" if r.is_default else "custom"
        print(f"{r.id}\t{r.keyword}\t{r.major_category} / {r.category}\t{origin}")
    return 0


def cmd_add_rule(
    account_id: str,
    *,
    keyword: str,
    major_category: str,
    category: str,
    sub_category: str | None = None,
    database_url: str | None = None,
) -> int:
    from db.client import session_scope
    from .persistence import create_rule

    try:
        with session_scope(database_url=database_url) as session:
            rule = create_rule(
                session,
                account_id=account_id,
                keyword=keyword,
                major_category=major_category,
                category=category,
                sub_category=sub_category,
            )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to create rule: {e}", file=sys.stderr)
        return 1

    print(f"Created rule {rule.id}: {rule.keyword!r} -> {rule.major_category} / {rule.category}")
    return 0


def cmd_delete_rule(account_id: str, rule_id: int, *, database_url: str | None = None) -> int:
    from db.client import session_scope
    from .persistence import soft_delete_rule

    try:
        with session_scope(database_url=database_url) as session:
            soft_delete_rule(session, account_id=account_id, rule_id=rule_id)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to delete rule: {e}", file=sys.stderr)
        return 1

    print(f"Deleted rule {rule_id}")
    return 0


def cmd_seed_default_rules(account_id: str, *, database_url: str | None = None) -> int:
    from db.client import session_scope
    from .persistence import seed_default_rules

    try:
        with session_scope(database_url=database_url) as session:
            n = seed_default_rules(session, account_id=account_id)
    except Exception as e:
        print(f"Error: failed to seed default rules: {e}", file=sys.stderr)
        return 1

    print(f"Seeded {n} default rules")
    return 0


def cmd_seed_taxonomy(file: Path | None, *, database_url: str | None = None) -> int:
    from .ingest.seed_taxonomy import DEFAULT_SEED_FILE, reseed_taxonomy

    path = file or DEFAULT_SEED_FILE
    try:
        n = reseed_taxonomy(database_url=database_url, file=path)
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to seed taxonomy: {e}", file=sys.stderr)
        return 1

    print(f"Seeded {n} taxonomy rows")
    return 0


def _exit(code: int) -> None:
    if code != 0:
        raise typer.Exit(code)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Assign categories to pending transactions using merchant keywords, "
        "custom rules, and categorization history. Loads DATABASE_URL from a "
        "local .env before running."
    ),
)
rules_app = typer.Typer(no_args_is_help=True, help="Manage keyword rules for an account.")
app.add_typer(rules_app, name="rules")

DATABASE_URL_HELP = "Override DATABASE_URL (falls back to env var)."


@app.command("run")
def run_cmd(
    account_id: str = typer.Option(
        ..., "--account-id", help="Account whose pending transactions to categorize."
    ),
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
    history_limit: int | None = typer.Option(
        None,
        min=1,
        help="How many recent categorized transactions to compare against "
        "(default 500 or AUTO_CATEGORIZE_HISTORY_LIMIT).",
    ),
) -> None:
    """Categorize pending transactions and report counts per match type."""

    _exit(cmd_auto_categorize(account_id, database_url=database_url, history_limit=history_limit))


@app.command("seed-taxonomy")
def seed_taxonomy_cmd(
    file: Path | None = typer.Option(None, "--file", dir_okay=False, help="Taxonomy seed JSON."),
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    """Replace the category taxonomy with the contents of a seed file."""

    _exit(cmd_seed_taxonomy(file, database_url=database_url))


@rules_app.command("list")
def rules_list_cmd(
    account_id: str = typer.Option(..., "--account-id"),
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    _exit(cmd_list_rules(account_id, database_url=database_url))


@rules_app.command("add")
def rules_add_cmd(
    account_id: str = typer.Option(..., "--account-id"),
    keyword: str = typer.Option(..., help="Case-insensitive substring to look for."),
    major_category: str = typer.Option(..., "--major", help="Major category name."),
    category: str = typer.Option(..., help="Category name under the major."),
    sub_category: str | None = typer.Option(None, "--sub", help="Optional sub-qualifier."),
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    _exit(
        cmd_add_rule(
            account_id,
            keyword=keyword,
            major_category=major_category,
            category=category,
            sub_category=sub_category,
            database_url=database_url,
        )
    )


@rules_app.command("delete")
def rules_delete_cmd(
    rule_id: int = typer.Argument(..., help="Id of the rule to delete."),
    account_id: str = typer.Option(..., "--account-id"),
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    _exit(cmd_delete_rule(account_id, rule_id, database_url=database_url))


@rules_app.command("seed-defaults")
def rules_seed_defaults_cmd(
    account_id: str = typer.Option(..., "--account-id"),
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    """Copy the built-in merchant table into the account's rules."""

    _exit(cmd_seed_default_rules(account_id, database_url=database_url))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Logging level (falls back to AUTO_CATEGORIZE_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # override=False keeps already-exported variables
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m auto_categorize.cli`
    app()
