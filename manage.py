#!/usr/bin/env python3
"""
Squares Score Automation Management CLI

Command-line operator tools: run and inspect the score pipeline, enter scores
by hand and manage the database.
"""

import json
import logging
import os
from datetime import date

import click
from flask.cli import with_appcontext
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

# The CLI never runs the background score check
os.environ.setdefault("SCHEDULER_ENABLED", "False")

from app import create_app, db  # noqa: E402
from app.models import Contest, PipelineConfig, QuarterResult  # noqa: E402
from app.services import pipeline_admin  # noqa: E402
from app.services.score_entry import ScoreEntryError, save_scores  # noqa: E402
from app.utils.quarters import QUARTERS  # noqa: E402

app = create_app()


def _echo_run(run):
    marker = "✅" if run.status_code < 400 else "❌"
    label = run.payload.get("status") or run.payload.get("error")
    click.echo(f"{marker} [{run.status_code}] {label}")
    click.echo(json.dumps(run.payload, indent=2, default=str))


@click.group()
def cli():
    """Squares Score Automation Management CLI"""
    pass


# Pipeline Commands
@cli.group()
def pipeline():
    """Score pipeline commands"""
    pass


@pipeline.command()
@click.option("--quarter", type=click.Choice(QUARTERS), help="Process only this quarter")
@click.option("--force", is_flag=True, help="Ignore the enabled and finished gates")
@with_appcontext
def check(quarter, force):
    """Run a score check now"""
    _echo_run(pipeline_admin.trigger_score_check(quarter=quarter, force=force))


@pipeline.command()
@with_appcontext
def enable():
    """Enable automated score checking"""
    try:
        pipeline_admin.set_enabled(True)
        click.echo("✅ Score checking enabled")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error enabling score checking: {str(e)}")
        logging.error(f"Enable failed - SQL error: {e}")


@pipeline.command()
@with_appcontext
def disable():
    """Disable automated score checking"""
    try:
        pipeline_admin.set_enabled(False)
        click.echo("✅ Score checking disabled")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error disabling score checking: {str(e)}")
        logging.error(f"Disable failed - SQL error: {e}")


@pipeline.command("init-config")
@click.option(
    "--game-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Game date (YYYY-MM-DD)",
)
@click.option("--start-hour", type=click.IntRange(0, 23), help="Local hour checks start")
@click.option("--enable", "enable_checks", is_flag=True, help="Enable score checking")
@with_appcontext
def init_config(game_date, start_hour, enable_checks):
    """Create or update the pipeline config row"""
    try:
        config = PipelineConfig.get_or_create()

        if game_date:
            config.game_date = game_date.date()
            # A new game date starts a new game
            config.game_finished = False
        if start_hour is not None:
            config.check_start_hour = start_hour
        if enable_checks:
            config.enabled = True

        db.session.commit()
        click.echo(
            f"✅ Pipeline config: game {config.game_date} from {config.check_start_hour}:00, "
            f"{'enabled' if config.enabled else 'disabled'}"
        )

    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error writing config: {str(e)}")
        logging.error(f"Config init failed - SQL error: {e}")


@pipeline.command("status")
@with_appcontext
def pipeline_status():
    """Show pipeline config"""
    config = pipeline_admin.get_config()
    if not config:
        click.echo("⚠️  No pipeline config. Run: manage.py pipeline init-config")
        return

    click.echo("🏈 Score Pipeline")
    click.echo("=" * 40)
    click.echo(f"Enabled:       {'🟢 yes' if config.enabled else '⚪ no'}")
    click.echo(f"Game date:     {config.game_date} (from {config.check_start_hour}:00)")
    click.echo(f"Last checked:  {config.last_checked_at or 'never'}")
    click.echo(f"Last status:   {config.last_status or '-'} (period {config.last_period or '-'})")
    click.echo(f"Game finished: {'✅ yes' if config.game_finished else 'no'}")


@pipeline.command()
@click.option("--limit", default=pipeline_admin.DEFAULT_LOG_LIMIT, show_default=True)
@with_appcontext
def logs(limit):
    """Show recent processing log entries"""
    entries = pipeline_admin.get_processing_logs(limit)
    if not entries:
        click.echo("No processing log entries.")
        return

    for entry in entries:
        marker = {"success": "✅", "error": "❌", "skipped": "⏭️ "}.get(entry.status, "•")
        line = f"{entry.created_at:%Y-%m-%d %H:%M:%S} {marker} {entry.action}"
        if entry.error_message:
            line += f" - {entry.error_message}"
        elif entry.details:
            line += f" {json.dumps(entry.details, default=str)}"
        click.echo(line)


@pipeline.command()
@with_appcontext
def results():
    """List quarter results with email delivery state"""
    rows = pipeline_admin.get_quarter_results()
    if not rows:
        click.echo("No quarter results yet.")
        return

    for r in rows:
        winner = "✉️ " if r.winner_email_sent else "⏳"
        owner = "✉️ " if r.owner_email_sent else "⏳"
        click.echo(
            f"  #{r.id} {r.contest.name} {r.quarter_name}: {r.home_score}-{r.away_score} "
            f"winner={r.winner_first_name or 'Unclaimed'} "
            f"prize=${r.prize_amount or 0:.2f} winner-email {winner} owner-email {owner}"
        )


@pipeline.command()
@click.argument("result_id", type=int)
@with_appcontext
def resend(result_id):
    """Reset a quarter result's email flags and force a score check"""
    run = pipeline_admin.resend_quarter_emails(result_id)
    if run is None:
        click.echo(f"❌ Quarter result {result_id} not found!")
        return
    _echo_run(run)


@pipeline.command()
@with_appcontext
def contests():
    """List contests flagged for automation"""
    rows = pipeline_admin.get_automated_contests()
    if not rows:
        click.echo("No automated contests found.")
        return

    for c in rows:
        numbers = "🔢" if c.numbers_assigned else "⚠️  no numbers"
        click.echo(f"  #{c.id} {c.name} ({c.slug}) - {c.status} {numbers}")


# Score Commands
@cli.group()
def scores():
    """Manual score entry"""
    pass


@scores.command()
@click.argument("contest_id", type=int)
@click.argument("owner_id", type=int)
@click.argument("quarter", type=click.Choice(QUARTERS))
@click.argument("home_score", type=click.IntRange(min=0))
@click.argument("away_score", type=click.IntRange(min=0))
@with_appcontext
def save(contest_id, owner_id, quarter, home_score, away_score):
    """Save a quarter score and show the winning square"""
    try:
        winners = save_scores(
            contest_id,
            owner_id,
            [{"quarter": quarter, "home_score": home_score, "away_score": away_score}],
        )
    except ScoreEntryError as e:
        click.echo(f"❌ {e.message}")
        return

    for w in winners:
        click.echo(
            f"✅ {w.quarter} {w.home_score}-{w.away_score}: "
            f"{w.winner_name or 'Unclaimed square'}"
            + (f" <{w.winner_email}>" if w.winner_email else "")
        )


# Database Commands
@cli.group()
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command()
@with_appcontext
def init_db():
    """Initialize database tables and seed the pipeline config"""
    try:
        db.create_all()
        PipelineConfig.get_or_create()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Error initializing database: {str(e)}")


@db_cmd.command()
@with_appcontext
def reset():
    """⚠️  DANGER: Drop and recreate all tables"""
    if not click.confirm("This will DELETE ALL DATA. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        db.drop_all()
        db.create_all()
        click.echo("✅ Database reset successfully!")
    except SQLAlchemyError as e:
        click.echo(f"❌ Error resetting database: {str(e)}")


# Info Commands
@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🏈 Squares Score Automation Status")
    click.echo("=" * 40)

    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    config = PipelineConfig.get()
    if config:
        state = "🟢 enabled" if config.enabled else "⚪ disabled"
        click.echo(f"✅ Pipeline: {state}, game {config.game_date}")
    else:
        click.echo("⚠️  Pipeline: not configured")

    automated = Contest.get_automation_eligible()
    click.echo(f"🏆 Eligible contests: {len(automated)}")

    result_count = QuarterResult.query.count()
    pending = QuarterResult.query.filter(
        (QuarterResult.winner_email_sent.is_(False))
        | (QuarterResult.owner_email_sent.is_(False))
    ).count()
    click.echo(f"📊 Quarter results: {result_count} ({pending} with pending emails)")

    click.echo(f"📅 Today: {date.today()}")


if __name__ == "__main__":
    with app.app_context():
        cli()
