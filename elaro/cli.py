"""
``elaro`` command line.

Every command loads ``AppConfig`` (``--config`` to override), configures
logging, opens the SQLite history store with the schema brought up to
date, then prints plain text or, with ``--json``, a JSON document. Bad
input exits with code 1 and an ``[ERROR]`` line on stderr.

Typical day::

    elaro init-db
    elaro import-content
    elaro recommend --focus independence
    elaro log-action -f independence -t ind-try-first -m 5 --felt ok

End of week::

    elaro weekly-review --focus independence
    elaro apply-tweak --focus independence --decision keep
"""

from __future__ import annotations

import calendar
import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer

from elaro.taxonomy.action_taxonomy import ActionStatus, FeltDifficulty, TweakDecision

app = typer.Typer(
    name="elaro",
    help="Elaro — daily caregiver action recommender and weekly review.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Return the merged ``AppConfig`` or exit 1 with the reason on stderr."""
    from pydantic import ValidationError

    from elaro.config import load_config

    try:
        return load_config(Path(config_path) if config_path else None)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Invalid configuration: {exc}", err=True)
    raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from elaro.utils.logging import configure_logging
    configure_logging(config.logging)


@contextmanager
def _open_store(config, db_path: Optional[str] = None):
    """Yield an open connection with the schema and migrations applied."""
    from elaro.db.connection import get_connection
    from elaro.db.migrations import prepare_database

    with get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        prepare_database(conn)
        yield conn


def _parse_moment(value: Optional[str], config) -> Optional[datetime]:
    """Parse an ISO date/time option; naive values are wall-clock in ``engine.timezone``."""
    if value is None:
        return None
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        typer.echo(f"[ERROR] Invalid date/time '{value}'. Use ISO format, e.g. 2026-10-19T08:30.", err=True)
        raise typer.Exit(code=1)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=config.engine.tzinfo)
    return moment


def _parse_week(value: Optional[str], config, weekly) -> datetime:
    """Return the start of the week containing ``value`` (default: this week)."""
    if value is None:
        return weekly.current_week_start()
    try:
        day = date.fromisoformat(value)
    except ValueError:
        typer.echo(f"[ERROR] Invalid --week '{value}'. Use YYYY-MM-DD.", err=True)
        raise typer.Exit(code=1)
    return weekly.current_week_start(datetime(day.year, day.month, day.day, 12, tzinfo=config.engine.tzinfo))


def _echo_json(payload) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


_CONFIG_OPTION = typer.Option(None, "--config", help="Path to TOML config file.")
_FOCUS_OPTION = typer.Option(..., "--focus", "-f", help="Focus area id, e.g. 'independence'.")
_JSON_OPTION = typer.Option(False, "--json", help="Print JSON instead of text.")


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Database file to create instead of database.db_path."
    ),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Create the history database (idempotent) and bring its schema up to date."""
    from elaro.db.repositories.focus_repo import FocusAreaRepository
    from elaro.db.schema import get_existing_tables

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target = db_path or config.database.db_path
    with _open_store(config, target) as conn:
        tables = get_existing_tables(conn)
        focus_count = len(FocusAreaRepository(conn).get_all(active_only=True))

    typer.echo(f"History store: {target}")
    typer.echo(f"  Tables:             {', '.join(tables)}")
    typer.echo(f"  Active focus areas: {focus_count}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = _CONFIG_OPTION,
    show_full: bool = typer.Option(False, "--full", help="Also dump every setting as JSON."),
) -> None:
    """Load and validate the configuration; exit 1 on any invalid value."""
    config = _load_config_or_exit(config_path)
    engine = config.engine

    rows = [
        ("Database", config.database.db_path),
        ("Content file", config.data.content_file),
        ("Timezone", engine.timezone),
        ("Week starts", calendar.day_name[engine.first_weekday]),
        ("Focus areas", ", ".join(f"{k} ({v})" for k, v in engine.focus_names.items())),
        ("Stress words", ", ".join(engine.stress_keywords)),
        ("Log level", config.logging.level),
    ]
    for label, value in rows:
        typer.echo(f"  {label + ':':<14} {value}")

    if show_full:
        _echo_json(config.model_dump())
    typer.echo("[OK] Config is valid.")

@app.command("import-content")
def import_content(
    content_file: Optional[str] = typer.Option(
        None,
        "--file",
        help="Path to the actions JSON file. Defaults to config.data.content_file.",
    ),
    config_path: Optional[str] = _CONFIG_OPTION,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Validate the file but do not write to the database.",
    ),
) -> None:
    """Import the action catalog from a JSON file.

    Creates the default focus areas if missing. Existing templates are only
    updated when the file carries a strictly newer content version.
    """
    from elaro.content.seed_loader import import_content as run_import
    from elaro.content.seed_loader import parse_document

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(content_file) if content_file else Path(config.data.content_file)
    if not path.exists():
        typer.echo(f"[ERROR] Content file not found: {path}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Loading content from: {path}")

    if dry_run:
        try:
            version, templates = parse_document(json.loads(path.read_text(encoding="utf-8")))
        except ValueError as exc:
            typer.echo(f"[ERROR] Content validation failed: {exc}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"[DRY RUN] {len(templates)} action(s) valid at content v{version}. Nothing written.")
        for t in templates:
            typer.echo(f"  {t.id} | {t.focus_id} | {t.durations}")
        return

    try:
        with _open_store(config) as conn:
            result = run_import(conn, path, config.engine.focus_names)
    except ValueError as exc:
        typer.echo(f"[ERROR] Content validation failed: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Content version:  {result.content_version}")
    typer.echo(f"  Focuses created:  {result.focuses_created}")
    typer.echo(f"  Inserted:         {result.inserted}")
    typer.echo(f"  Updated:          {result.updated}")
    typer.echo(f"  Unchanged:        {result.unchanged}")
    typer.echo("[OK] Content imported.")


@app.command("log-action")
def log_action(
    focus_id: str = _FOCUS_OPTION,
    template_id: str = typer.Option(..., "--template", "-t", help="Action template id."),
    minutes: int = typer.Option(..., "--minutes", "-m", help="Variant duration used (5, 10 or 20)."),
    status: ActionStatus = typer.Option(ActionStatus.DONE, "--status", help="Outcome."),
    felt: Optional[FeltDifficulty] = typer.Option(None, "--felt", help="How hard it felt."),
    mood: Optional[str] = typer.Option(None, "--mood", help="Optional mood tag."),
    note: Optional[str] = typer.Option(None, "--note", help="Optional free-text note."),
    at: Optional[str] = typer.Option(None, "--at", help="When it happened (ISO, default now)."),
    instance_id: Optional[str] = typer.Option(None, "--id", help="Instance id (default: random)."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Record the outcome of one action (append-only; re-logging an id is a no-op)."""
    from elaro.history.sqlite_store import SQLiteHistoryRepository
    from elaro.models.action import ActionInstance
    from elaro.utils.time_utils import utcnow

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    moment = _parse_moment(at, config) or utcnow()

    with _open_store(config) as conn:
        history = SQLiteHistoryRepository(conn)
        template = history.templates.get_by_id(template_id)
        if template is None:
            typer.echo(f"[ERROR] Unknown template '{template_id}'. Run 'import-content' first.", err=True)
            raise typer.Exit(code=1)
        try:
            instance = ActionInstance(
                id=instance_id or uuid.uuid4().hex,
                date=moment,
                focus_id=focus_id,
                template_id=template_id,
                variant_duration=minutes,
                status=status,
                felt_difficulty=felt,
                mood=mood,
                note=note,
            )
            instance.check_against(template)
        except ValueError as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=1)
        if history.instances.get_by_id(instance.id) is not None:
            typer.echo(f"[OK] Instance {instance.id} already recorded; nothing changed.")
            return
        try:
            history.save_action_instance(instance)
        except sqlite3.Error as exc:
            typer.echo(f"[ERROR] Could not save {instance.id}: {exc}", err=True)
            raise typer.Exit(code=1)

    typer.echo(f"[OK] Logged {instance.status} for '{template.title}' ({instance.variant_duration} min) as {instance.id}.")


@app.command("pin")
def pin(
    focus_id: str = _FOCUS_OPTION,
    titles: Optional[list[str]] = typer.Option(
        None, "--title", help="Micro-skill title to pin (repeatable); replaces the current list."
    ),
    clear: bool = typer.Option(False, "--clear", help="Remove every pinned title."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Set the micro-skill titles the recommender boosts for a focus."""
    from elaro.db.repositories.focus_repo import FocusAreaRepository

    if clear and titles:
        typer.echo("[ERROR] Use either --title or --clear, not both.", err=True)
        raise typer.Exit(code=1)
    if not clear and not titles:
        typer.echo("[ERROR] Give at least one --title, or --clear.", err=True)
        raise typer.Exit(code=1)

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    cleaned = [] if clear else [t.strip() for t in titles if t.strip()]
    with _open_store(config) as conn:
        if not FocusAreaRepository(conn).set_pinned_titles(focus_id, cleaned):
            typer.echo(f"[ERROR] Unknown focus '{focus_id}'. Run 'import-content' first.", err=True)
            raise typer.Exit(code=1)

    if cleaned:
        typer.echo(f"[OK] Pinned for {focus_id}: {', '.join(cleaned)}")
    else:
        typer.echo(f"[OK] Cleared pinned titles for {focus_id}.")


@app.command("recommend")
def recommend(
    focus_id: str = _FOCUS_OPTION,
    at: Optional[str] = typer.Option(None, "--at", help="Moment to recommend for (ISO, default now)."),
    show_scores: bool = typer.Option(False, "--scores", help="Show score breakdowns."),
    as_json: bool = _JSON_OPTION,
    out: Optional[str] = typer.Option(None, "--out", help="Also write the JSON payload to this file."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Rank today's actions for a focus area and explain why."""
    from elaro.container import build_engines
    from elaro.history.sqlite_store import SQLiteHistoryRepository
    from elaro.reporting.export import export_to_json, suggestion_to_dict
    from elaro.reporting.formatters import format_suggestion

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    moment = _parse_moment(at, config)

    with _open_store(config) as conn:
        engines = build_engines(SQLiteHistoryRepository(conn), config.engine)
        suggestion = engines.recommender.rank(focus_id, moment)

    payload = suggestion_to_dict(suggestion)
    if out:
        export_to_json(payload, Path(out))
    if as_json:
        _echo_json(payload)
    else:
        typer.echo(format_suggestion(suggestion, show_scores=show_scores or config.debug))


@app.command("signals")
def signals(
    focus_id: str = _FOCUS_OPTION,
    at: Optional[str] = typer.Option(None, "--at", help="End of every window (ISO, default now)."),
    as_json: bool = _JSON_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show every behavioural signal for a focus area."""
    from elaro.container import build_engines
    from elaro.history.sqlite_store import SQLiteHistoryRepository
    from elaro.reporting.export import snapshot_to_dict
    from elaro.reporting.formatters import format_signals

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    moment = _parse_moment(at, config)

    with _open_store(config) as conn:
        engines = build_engines(SQLiteHistoryRepository(conn), config.engine)
        snapshot = engines.signals.snapshot(focus_id, moment)

    if as_json:
        _echo_json(snapshot_to_dict(snapshot))
    else:
        typer.echo(format_signals(snapshot))


@app.command("weekly-review")
def weekly_review(
    focus_id: str = _FOCUS_OPTION,
    week: Optional[str] = typer.Option(
        None, "--week", help="Any date in the week to review (YYYY-MM-DD, default this week)."
    ),
    as_json: bool = _JSON_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Analyse one week and suggest keep / scale down / scale up."""
    from elaro.container import build_engines
    from elaro.history.sqlite_store import SQLiteHistoryRepository
    from elaro.reporting.export import analysis_to_dict
    from elaro.reporting.formatters import format_analysis

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_store(config) as conn:
        engines = build_engines(SQLiteHistoryRepository(conn), config.engine)
        week_start = _parse_week(week, config, engines.weekly)
        analysis = engines.weekly.analyze_week(focus_id, week_start)

    if as_json:
        _echo_json(analysis_to_dict(analysis))
    else:
        typer.echo(format_analysis(analysis))


@app.command("apply-tweak")
def apply_tweak(
    focus_id: str = _FOCUS_OPTION,
    decision: TweakDecision = typer.Option(..., "--decision", "-d", help="Confirmed tweak."),
    week: Optional[str] = typer.Option(
        None, "--week", help="Any date in the week being decided (YYYY-MM-DD, default this week)."
    ),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Record the confirmed tweak as that week's summary (supersedes any earlier one)."""
    from elaro.container import build_engines
    from elaro.history.sqlite_store import SQLiteHistoryRepository

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_store(config) as conn:
        engines = build_engines(SQLiteHistoryRepository(conn), config.engine)
        week_start = _parse_week(week, config, engines.weekly)
        engines.weekly.apply_tweak(decision, focus_id, week_start)

    typer.echo(f"[OK] {decision.display_name} recorded for {focus_id}, week of {week_start.date()}.")


@app.command("summaries")
def summaries(
    focus_id: str = _FOCUS_OPTION,
    limit: int = typer.Option(10, "--limit", "-n", help="How many weeks to show."),
    as_json: bool = _JSON_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """List recorded weekly summaries, most recent first."""
    from elaro.container import build_engines
    from elaro.history.sqlite_store import SQLiteHistoryRepository
    from elaro.reporting.export import summary_to_dict
    from elaro.reporting.formatters import format_summaries

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_store(config) as conn:
        engines = build_engines(SQLiteHistoryRepository(conn), config.engine)
        records = engines.weekly.summaries(focus_id, limit)

    if as_json:
        _echo_json([summary_to_dict(s) for s in records])
    else:
        typer.echo(format_summaries(focus_id, records))


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
