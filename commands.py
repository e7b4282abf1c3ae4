import logging

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import select

from models import db
from models.subjects import Subject
from models.users import User
from classes.archival import run_daily_archival
from classes.attempt_manager import AttemptManager

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "password"

# (code, name, default time limit in minutes)
DEFAULT_SUBJECTS = [
    ("LAW", "Air Law", 45),
    ("AGK", "Aircraft General Knowledge", 35),
    ("FPP", "Flight Performance and Planning", 95),
    ("HPL", "Human Performance and Limitations", 30),
    ("MET", "Meteorology", 45),
    ("NAV", "Navigation", 65),
    ("OP", "Operational Procedures", 30),
    ("POF", "Principles of Flight", 45),
    ("COM", "Communications", 30),
]


def seed_system():
    """Create missing default subjects and the admin account. Returns what was created."""
    created = {"subjects": [], "admin": False}
    existing = set(db.session.scalars(select(Subject.code)))
    for code, name, minutes in DEFAULT_SUBJECTS:
        if code in existing:
            continue
        db.session.add(Subject(code=code, name=name, default_time_limit_minutes=minutes))
        created["subjects"].append(code)

    if not db.session.scalar(select(User).filter_by(username=ADMIN_USERNAME)):
        admin = User(username=ADMIN_USERNAME, full_name="Administrator", role="admin")
        admin.set_password(DEFAULT_ADMIN_PASSWORD)
        db.session.add(admin)
        created["admin"] = True

    db.session.commit()
    logger.info("System initialised: subjects %s, admin created=%s", created["subjects"], created["admin"])
    return created


@click.command("init-system")
@with_appcontext
def init_system_command():
    """Create tables and seed subjects and the admin user."""
    db.create_all()
    created = seed_system()
    click.echo(f"Subjects created: {', '.join(created['subjects']) or 'none'}")
    click.echo("Admin user created." if created["admin"] else "Admin user already exists.")


@click.command("reset-admin")
@click.option("--password", default=DEFAULT_ADMIN_PASSWORD, help="New admin password.")
@with_appcontext
def reset_admin_command(password):
    """Reset (or create) the admin account password."""
    admin = db.session.scalar(select(User).filter_by(username=ADMIN_USERNAME))
    if not admin:
        admin = User(username=ADMIN_USERNAME, full_name="Administrator", role="admin")
        db.session.add(admin)
    admin.role = "admin"
    admin.archived = False
    admin.set_password(password)
    db.session.commit()
    click.echo("Admin password reset.")


@click.command("archive-students")
@with_appcontext
def archive_students_command():
    """Run the daily archival job once."""
    summary = run_daily_archival()
    if summary.aborted:
        click.echo(f"Archival aborted: {summary.reason}")
        return
    click.echo(
        f"Processed {summary.processed} students, archived {summary.archived}, "
        f"{summary.within_grace_period} within grace period, "
        f"{summary.stale_attempts} stale attempts abandoned."
    )


@click.command("sweep-attempts")
@click.option("--hours", type=int, default=None, help="Age in hours after which an open attempt is abandoned.")
@with_appcontext
def sweep_attempts_command(hours):
    cutoff = hours if hours is not None else current_app.config["STALE_ATTEMPT_HOURS"]
    swept = AttemptManager().sweep_stale_attempts(cutoff)
    click.echo(f"{swept} stale attempts marked abandoned.")


def register_commands(app):
    app.cli.add_command(init_system_command)
    app.cli.add_command(reset_admin_command)
    app.cli.add_command(archive_students_command)
    app.cli.add_command(sweep_attempts_command)
