import json
import logging
from datetime import datetime

import click

from . import app
from .models import db
from .notifications import send_daily_reminders
from .storage import LocalStore

logger = logging.getLogger(__name__)


def _local_store():
    return LocalStore(app.config["LOCAL_STORE_PATH"], app.config["TRACKFLOW_TIMEZONE"])


@app.cli.command("init-db")
def init_db():
    """Create all database tables."""
    db.create_all()
    click.echo("Database tables created")


@app.cli.command("send-reminders")
@click.option("--at", "at_time", default=None, help="Pretend the current time is HH:MM.")
def send_reminders(at_time):
    """Send daily reminders to subscriptions due this minute."""
    now = None
    if at_time:
        try:
            clock = datetime.strptime(at_time, "%H:%M")
        except ValueError:
            raise click.BadParameter("expected HH:MM", param_hint="--at")
        now = datetime.now().replace(hour=clock.hour, minute=clock.minute)
    reports = send_daily_reminders(now)
    for report in reports:
        click.echo(json.dumps(report.to_dict()))
    logger.info("Daily reminders sent")


@app.cli.command("local-log")
@click.argument("activity_id")
@click.argument("value", type=float)
@click.option("--date", "day", default=None, help="YYYY-MM-DD, defaults to today.")
def local_log(activity_id, value, day):
    """Record VALUE for ACTIVITY_ID in the local store."""
    store = _local_store()
    if not any(a["id"] == activity_id for a in store.get_activities()):
        raise click.ClickException(f"Activity {activity_id} not found")
    try:
        log = store.log_value(activity_id, value, day)
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD", param_hint="--date")
    click.echo(f"Logged {log['value']} for {activity_id} on {log['date']}")


@app.cli.command("local-streak")
@click.argument("activity_id")
def local_streak(activity_id):
    """Print the current streak for ACTIVITY_ID from the local store."""
    click.echo(_local_store().calculate_streak(activity_id))


@app.cli.command("local-summary")
def local_summary():
    """Print today's dashboard computed from the local store."""
    click.echo(json.dumps(_local_store().dashboard(), indent=2, ensure_ascii=False))
