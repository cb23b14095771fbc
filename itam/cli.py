"""
Custom Flask CLI commands.

These commands are registered with the app via ``register_commands()``
in the application factory. Run them with ``flask <command_name>``.

Usage::

    flask init-db                         # Create all tables
    flask db-check                        # Verify connectivity and schema
    flask seed-admin --email me@corp.com  # Create an admin operator
    flask asset-summary                   # Asset counts per status
"""

import click
import sqlalchemy as sa
from flask import current_app
from flask.cli import with_appcontext

from itam.extensions import db
from itam.models.user import ROLE_ADMIN, User

# Tables the tracker expects to find.
_EXPECTED_TABLES = ("users", "category", "location", "asset", "asset_transaction")

# -- Default values for the seeded admin user ------------------------------
_DEFAULT_EMAIL = "admin@localhost"
_DEFAULT_NAME = "Asset Admin"


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create every table that does not exist yet."""
    db.create_all()
    click.secho("Database tables created.", fg="green")


@click.command("db-check")
@with_appcontext
def db_check_command():
    """
    Verify database connectivity and confirm the expected tables exist.

    Useful for confirming that ``DATABASE_URL`` is correct and that
    migrations have been applied.
    """
    click.echo("=" * 60)
    click.echo("  Asset Tracker: Database Connectivity Check")
    click.echo("=" * 60)

    db_uri = current_app.config["SQLALCHEMY_DATABASE_URI"]
    click.echo(f"\n  Connection string: {db_uri}\n")

    # -- Step 1: Basic connectivity ----------------------------------------
    click.echo("[1/2] Testing connection...")
    try:
        row = db.session.execute(sa.text("SELECT 1 AS connected")).fetchone()
    except Exception as exc:  # pylint: disable=broad-exception-caught
        click.secho(f"      ✗ Connection failed: {exc}", fg="red")
        click.echo("\n  Is DATABASE_URL set to a reachable database?")
        return
    if not row or row[0] != 1:
        click.secho("      ✗ Unexpected result from test query.", fg="red")
        return
    click.secho("      ✓ Connected successfully.", fg="green")

    # -- Step 2: Tables ----------------------------------------------------
    click.echo("[2/2] Checking tables...\n")
    present = set(sa.inspect(db.engine).get_table_names())
    missing = [name for name in _EXPECTED_TABLES if name not in present]
    for name in _EXPECTED_TABLES:
        mark = "✗" if name in missing else "✓"
        click.echo(f"      {mark} {name}")

    if missing:
        click.secho(
            "\n  Missing tables. Run 'flask db upgrade' or 'flask init-db'.",
            fg="red",
        )
        return

    click.echo("\n" + "=" * 60)
    click.secho("  All checks passed. Database is ready.", fg="green", bold=True)
    click.echo("=" * 60)


@click.command("seed-admin")
@click.option(
    "--email",
    default=_DEFAULT_EMAIL,
    show_default=True,
    help="Email address for the admin user.",
)
@click.option(
    "--name",
    default=_DEFAULT_NAME,
    show_default=True,
    help="Display name for the admin user.",
)
@with_appcontext
def seed_admin_command(email: str, name: str):
    """
    Create an admin operator, or promote and reactivate an existing one.
    """
    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(email=email, name=name, role=ROLE_ADMIN, is_active=True)
        db.session.add(user)
        click.echo(f"Creating admin user {email}...")
    else:
        user.role = ROLE_ADMIN
        user.is_active = True
        click.echo(f"User {email} already exists; ensuring admin role.")
    db.session.commit()

    click.secho("Admin user is ready.", fg="green", bold=True)
    click.echo(f"  ID:    {user.uuid}")
    click.echo(f"  Email: {user.email}")
    click.echo(f"  Role:  {user.role}")


@click.command("asset-summary")
@with_appcontext
def asset_summary_command():
    """Print the number of assets in each lifecycle status."""
    from itam.services import asset_service  # pylint: disable=import-outside-toplevel

    counts = asset_service.count_by_status()
    for status, total in counts.items():
        click.echo(f"  {status:<10} {total:>6}")
    click.echo(f"  {'total':<10} {sum(counts.values()):>6}")


def register_commands(app):
    """Register all custom CLI commands with the Flask application."""
    app.cli.add_command(init_db_command)
    app.cli.add_command(db_check_command)
    app.cli.add_command(seed_admin_command)
    app.cli.add_command(asset_summary_command)
