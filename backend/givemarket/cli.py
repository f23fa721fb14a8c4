# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/givemarket/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@givemarket.local] [--admin-password "Password123!"]
#   Idempotent bootstrap: creates tables and a bootstrap admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email seller@example.com --password "Password123!" --role seller [--name "Jane"]
# - python -m flask users list [--role seller]
#
# Organizations:
# - python -m flask orgs list
# - python -m flask orgs check-balances
#   Recompute completed direct donations per organization; exits 1 on mismatch.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30

import sys
from datetime import timedelta

import click
from flask.cli import with_appcontext

from .errors import DomainError
from .extensions import db
from .models import Organization, User
from .permissions import ROLE_ADMIN, VALID_ROLES
from .services import auth_service, organization_service, session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default='admin@givemarket.local', show_default=True, help='Bootstrap admin email')
@click.option('--admin-password', default='Password123!', show_default=True, help='Bootstrap admin password')
@with_appcontext
def init_system(admin_email, admin_password):
    """
    Create tables (if missing) and a bootstrap admin account.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing GiveMarket...")
    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter(db.func.lower(User.email) == admin_email.lower()).first()
    if existing:
        click.echo(f"PASS Using existing admin: {existing.email} (ID: {existing.id})")
        return

    try:
        admin = auth_service.create_user(admin_email, admin_password, role=ROLE_ADMIN, full_name="Administrator")
    except DomainError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created admin: {admin.email} (ID: {admin.id})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), prompt=True, help='Role')
@click.option('--name', 'full_name', default=None, help='Full name')
@with_appcontext
def create_user_cli(email, password, role, full_name):
    """Create a user with any role (self-registration only creates customers)."""
    try:
        user = auth_service.create_user(email, password, role=role, full_name=full_name)
    except DomainError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), default=None, help='Filter by role')
@with_appcontext
def list_users(role):
    """List users with role and active status."""
    users = auth_service.list_users(role=role)

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Role':<10} {'Active':<8} {'Name'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.role:<10} {active_str:<8} {user.full_name or '-'}")

    click.echo("="*80 + "\n")


@click.group('orgs')
def orgs_group():
    """Organization inspection commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = db.session.query(Organization).order_by(Organization.id.asc()).all()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<35} {'Status':<10} {'Received (cents)':>18}")
    click.echo("="*90)

    for org in orgs:
        click.echo(f"{org.id:<5} {org.name_en:<35} {org.verification_status:<10} {org.total_received_cents:>18}")

    click.echo("="*90 + "\n")


@orgs_group.command('check-balances')
@with_appcontext
def check_balances_cli():
    """
    Compare each organization's total_received_cents with the sum of its
    completed direct donations. Exits with status 1 if any differ.
    """
    report = organization_service.check_balances()
    mismatches = [row for row in report if not row["consistent"]]

    for row in mismatches:
        click.echo(
            f"FAIL org {row['organization_id']} ({row['name_en']}): "
            f"stored={row['total_received_cents']} expected={row['expected_cents']}"
        )

    if mismatches:
        click.echo(f"FAIL {len(mismatches)} of {len(report)} organizations out of balance")
        sys.exit(1)

    click.echo(f"PASS {len(report)} organizations balanced")


@click.group('maintenance')
def maintenance_group():
    """Periodic cleanup commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """Delete expired or revoked sessions older than the retention window."""
    deleted = session_service.cleanup_expired_sessions(retention=timedelta(days=retention_days))
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(orgs_group)
    app.cli.add_command(maintenance_group)
