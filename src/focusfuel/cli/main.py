"""Typer CLI entrypoint and command definitions for focusfuel."""

import datetime as dt
from pathlib import Path

import typer

from focusfuel.core.defaults import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_HOST,
    DEFAULT_OUT_DIR,
    DEFAULT_PORT,
)

app = typer.Typer()


def _load_or_default(path: Path):  # type: ignore[no-untyped-def]
    from focusfuel.core.config import default_config, load_config

    if path.exists():
        return load_config(path)
    return default_config()


# -- config -------------------------------------------------------------------
config_app = typer.Typer()
app.add_typer(config_app, name="config")


@config_app.command("init")
def config_init_cmd(
    path: str = typer.Option(DEFAULT_CONFIG_PATH, "--path", help="Where to write the config YAML"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the default configuration to a YAML file."""
    from focusfuel.core.config import default_config, save_config

    out = Path(path)
    if out.exists() and not force:
        typer.echo(f"Config already exists: {out} (use --force to overwrite)", err=True)
        raise typer.Exit(code=1)
    save_config(default_config(), out)
    typer.echo(f"Wrote default config to {out}")


@config_app.command("show")
def config_show_cmd(
    path: str = typer.Option(DEFAULT_CONFIG_PATH, "--path", help="Config YAML (defaults used if missing)"),
) -> None:
    """Print the effective configuration as YAML."""
    import yaml

    config = _load_or_default(Path(path))
    typer.echo(yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False))


@config_app.command("validate")
def config_validate_cmd(
    path: str = typer.Option(..., "--path", help="Config YAML to validate"),
) -> None:
    """Validate a config YAML file and report the first problem found."""
    from pydantic import ValidationError

    from focusfuel.core.config import load_config

    cfg_path = Path(path)
    if not cfg_path.exists():
        typer.echo(f"File not found: {cfg_path}", err=True)
        raise typer.Exit(code=1)

    try:
        config = load_config(cfg_path)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"Invalid config: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"Config OK: sensitivity={config.sensitivity}, "
        f"{len(config.blacklist)} blacklisted, {len(config.whitelist)} whitelisted, "
        f"ai={'on' if config.ai.enabled else 'off'}"
    )


# -- classify -----------------------------------------------------------------


@app.command("classify")
def classify_cmd(
    url: str = typer.Option(..., "--url", help="Page URL to classify"),
    title: str = typer.Option("", help="Page title"),
    time_spent: int = typer.Option(0, "--time-spent", min=0, help="Seconds spent on the page"),
    tab_switches: int = typer.Option(0, min=0),
    scroll_events: int = typer.Option(0, min=0),
    mouse_movements: int = typer.Option(0, min=0),
    clicks: int = typer.Option(0, min=0),
    keyboard_events: int = typer.Option(0, min=0),
    hour: int | None = typer.Option(None, min=0, max=23, help="Hour of day (defaults to now)"),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Config YAML (defaults used if missing)"),
    no_ai: bool = typer.Option(False, "--no-ai", help="Skip the AI stage"),
) -> None:
    """Classify one activity snapshot and print the result as JSON."""
    import asyncio

    from focusfuel.core.logging import configure_logging
    from focusfuel.core.types import ActivitySnapshot
    from focusfuel.infer.ai import create_ai_classifier
    from focusfuel.infer.patterns import PatternMatcher
    from focusfuel.infer.pipeline import ClassificationPipeline

    configure_logging("WARNING")
    cfg = _load_or_default(Path(config))
    snapshot = ActivitySnapshot(
        url=url,
        title=title,
        time_spent_seconds=time_spent,
        tab_switches=tab_switches,
        scroll_events=scroll_events,
        mouse_movements=mouse_movements,
        clicks=clicks,
        keyboard_events=keyboard_events,
        hour_of_day=dt.datetime.now().hour if hour is None else hour,
    )
    pipeline = ClassificationPipeline(
        cfg.domain_lists(),
        matcher=PatternMatcher(cfg.sensitivity),
        ai=None if no_ai else create_ai_classifier(cfg.ai),
        ai_timeout_seconds=cfg.ai.timeout_seconds,
    )
    result = asyncio.run(pipeline.classify(snapshot))
    typer.echo(result.model_dump_json(indent=2))


# -- patterns -----------------------------------------------------------------


@app.command("patterns")
def patterns_cmd(
    time_spent: int = typer.Option(..., "--time-spent", min=0, help="Seconds spent on the page"),
    tab_switches: int = typer.Option(0, min=0),
    scroll_events: int = typer.Option(0, min=0),
    mouse_movements: int = typer.Option(0, min=0),
    clicks: int = typer.Option(0, min=0),
    hour: int = typer.Option(12, min=0, max=23, help="Hour of day"),
    sensitivity: str = typer.Option("medium", help="low | medium | high"),
) -> None:
    """List the heuristic patterns a set of counters would trigger."""
    from focusfuel.core.types import ActivitySnapshot, Sensitivity
    from focusfuel.infer.patterns import PatternMatcher

    try:
        matcher = PatternMatcher(Sensitivity(sensitivity))
    except ValueError:
        typer.echo(f"Unknown sensitivity: {sensitivity!r}", err=True)
        raise typer.Exit(code=1)

    snapshot = ActivitySnapshot(
        url="about:blank",
        time_spent_seconds=time_spent,
        tab_switches=tab_switches,
        scroll_events=scroll_events,
        mouse_movements=mouse_movements,
        clicks=clicks,
        hour_of_day=hour,
    )
    patterns = matcher.evaluate(snapshot)
    if not patterns:
        typer.echo("No patterns matched")
        return
    for p in patterns:
        typer.echo(f"{p.pattern_id:<24} {p.confidence:>5.1f}  {p.severity:<6}  {p.description}")


# -- serve --------------------------------------------------------------------


@app.command("serve")
def serve_cmd(
    config: str = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Config YAML (defaults used if missing)"),
    host: str = typer.Option(DEFAULT_HOST, help="Bind address"),
    port: int = typer.Option(DEFAULT_PORT, help="Bind port"),
    no_ai: bool = typer.Option(False, "--no-ai", help="Skip the AI stage"),
    log_level: str = typer.Option("INFO", help="Logging level"),
) -> None:
    """Run the ingestion server with the periodic sweep."""
    import uvicorn

    from focusfuel.core.logging import configure_logging
    from focusfuel.tracking.runtime import build_runtime
    from focusfuel.ui.server import create_app

    configure_logging(log_level)
    runtime = build_runtime(_load_or_default(Path(config)), use_ai=not no_ai)
    typer.echo(f"Serving on http://{host}:{port} (events -> {runtime.store.path})")
    uvicorn.run(create_app(runtime), host=host, port=port, log_level=log_level.lower())


# -- report -------------------------------------------------------------------
report_app = typer.Typer()
app.add_typer(report_app, name="report")


@report_app.command("daily")
def report_daily_cmd(
    events_file: str = typer.Option(..., "--events-file", help="Path to the JSONL event log"),
    date: str | None = typer.Option(None, help="Day to summarise (YYYY-MM-DD); defaults to the earliest"),
    out_dir: str = typer.Option(DEFAULT_OUT_DIR, help="Output directory for report files"),
) -> None:
    """Generate a daily distraction report from the event log."""
    from focusfuel.report.daily import build_daily_report
    from focusfuel.report.export import export_report_json
    from focusfuel.sinks.store import JsonlEventStore

    events_path = Path(events_file)
    if not events_path.exists():
        typer.echo(f"Events file not found: {events_path}", err=True)
        raise typer.Exit(code=1)

    events = JsonlEventStore(events_path).read_all()
    typer.echo(f"Loaded {len(events)} events")

    try:
        day = dt.date.fromisoformat(date) if date is not None else None
        report = build_daily_report(events, day)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"Report for {report.date}: {report.distraction_count} distractions, "
        f"{report.distracted_minutes} distracted minutes"
    )
    report_path = export_report_json(report, Path(out_dir) / f"report_{report.date}.json")
    typer.echo(f"Report written to {report_path}")


if __name__ == "__main__":
    app()
