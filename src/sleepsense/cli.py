"""CLI for sleepsense."""

import asyncio
import logging
from uuid import UUID

import click

from sleepsense.errors import SleepSenseError


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise click.BadParameter(f"not an entry id: {value}")


@click.group()
@click.option("--config", "-c", "config_path", default=None, type=click.Path(),
              help="YAML config file (default: $SLEEPSENSE_CONFIG or ./sleepsense.yaml).")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """sleepsense: sleep scores and tips from exported sleep samples."""
    from sleepsense.app import build_app
    from sleepsense.config import load_settings

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    try:
        settings = load_settings(config_path)
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e))
    try:
        ctx.obj = build_app(settings)
    except SleepSenseError as e:
        raise click.ClickException(str(e))


@main.command()
@click.pass_obj
def dashboard(app) -> None:
    """Show last night's score and save it."""
    from sleepsense.dashboard import fetch_latest

    state = asyncio.run(fetch_latest(app))
    if state.error_message:
        raise click.ClickException(state.error_message)
    click.echo(state.last_night_summary)
    if state.today_score is not None:
        click.echo(f"Sleep score: {state.today_score:.0f}/100")


@main.command()
@click.pass_obj
def week(app) -> None:
    """Show daily totals and stored entries for the past week."""
    from sleepsense.dashboard import fetch_week, format_duration

    state = asyncio.run(fetch_week(app))
    if state.error_message:
        click.echo(f"Error: {state.error_message}", err=True)

    click.echo(f"\n{'=' * 60}")
    click.echo("  Daily totals")
    click.echo(f"{'=' * 60}")
    if not state.weekly_stats:
        click.echo("  (no samples)")
    for day in sorted(state.weekly_stats):
        click.echo(f"  {day:%a %Y-%m-%d}  {format_duration(state.weekly_stats[day])}")

    click.echo(f"\n{'=' * 60}")
    click.echo("  Entries")
    click.echo(f"{'=' * 60}")
    if not state.entries:
        click.echo("  (no entries)")
    for entry in state.entries:
        click.echo(f"  {entry.id}  {entry.date:%Y-%m-%d %H:%M}  "
                   f"{format_duration(entry.total_sleep):>7}  score {entry.sleep_score:.0f}")
        if entry.notes:
            click.echo(f"      Notes: {entry.notes}")


@main.command()
@click.pass_obj
def tips(app) -> None:
    """Show recommendations based on the past week."""
    from sleepsense.dashboard import load_recommendations

    state = asyncio.run(load_recommendations(app))
    if state.error_message:
        raise click.ClickException(state.error_message)
    for tip in state.recommendations:
        click.echo(f"  - {tip}")


@main.command()
@click.option("--dedupe", is_flag=True, help="Skip samples that already have an entry.")
@click.pass_obj
def sync(app, dedupe: bool) -> None:
    """Score last night's samples and store them as entries."""
    if dedupe:
        app.pipeline.dedupe = True
    try:
        result = asyncio.run(app.pipeline.sync_last_night())
    except SleepSenseError as e:
        raise click.ClickException(str(e))

    click.echo(f"Created {len(result.created)} entries"
               + (f", skipped {result.skipped} duplicates" if result.skipped else "") + ".")
    if not result.ok:
        for err in result.errors:
            click.echo(f"  failed: {err}", err=True)
        raise click.ClickException(f"{len(result.errors)} save(s) failed")


@main.command()
@click.argument("entry_id")
@click.argument("text", required=False)
@click.option("--clear", is_flag=True, help="Remove the entry's notes.")
@click.pass_obj
def notes(app, entry_id: str, text: str | None, clear: bool) -> None:
    """Set (or clear) the notes on an entry."""
    if text is None and not clear:
        raise click.UsageError("give TEXT or --clear")
    uid = _parse_uuid(entry_id)

    try:
        updated = asyncio.run(app.store.update_notes(uid, None if clear else text))
    except SleepSenseError as e:
        raise click.ClickException(str(e))
    click.echo("Notes updated." if updated else f"No entry {uid}.")


@main.command()
@click.argument("entry_id")
@click.pass_obj
def delete(app, entry_id: str) -> None:
    """Delete an entry by id."""
    uid = _parse_uuid(entry_id)
    try:
        deleted = asyncio.run(app.store.delete(uid))
    except SleepSenseError as e:
        raise click.ClickException(str(e))
    click.echo("Deleted." if deleted else f"No entry {uid}.")


@main.command()
@click.argument("start")
@click.argument("end")
@click.option("--id", "source_id", default=None, help="Source sample id.")
@click.pass_obj
def add(app, start: str, end: str, source_id: str | None) -> None:
    """Append a sample (ISO-8601 START and END) to the sample log."""
    from sleepsense.samples import SleepSample, parse_timestamp, write_samples

    try:
        sample = SleepSample(parse_timestamp(start), parse_timestamp(end), source_id)
    except ValueError as e:
        raise click.BadParameter(str(e))
    path = write_samples(app.settings.samples_path, [sample])
    click.echo(f"Added {sample.duration / 3600:.1f}h sample to {path}")


@main.command()
@click.option("--hours", type=float, required=True, help="Total sleep in hours.")
@click.option("--deep", default=0.0, help="Deep sleep in minutes.")
@click.option("--rem", default=0.0, help="REM sleep in minutes.")
@click.option("--awake", default=0.0, help="Minutes awake.")
@click.pass_obj
def score(app, hours: float, deep: float, rem: float, awake: float) -> None:
    """Score a night without saving it."""
    result = app.scorer.score(
        total_sleep=hours * 3600.0,
        deep_sleep=deep * 60.0,
        rem_sleep=rem * 60.0,
        awake_minutes=awake,
    )
    via = "model" if result.used_model else "heuristic"
    click.echo(f"Sleep score: {result.score:.0f}/100 ({via})")
    for tip in result.recommendations:
        click.echo(f"  - {tip}")


if __name__ == "__main__":
    main()
