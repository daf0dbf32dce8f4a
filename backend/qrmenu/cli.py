# Overview: Flask CLI command groups for accounts, sessions and maintenance.

# backend/qrmenu/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Accounts:
# - python -m flask users create --first-name Ada --last-name Lovelace --email ada@cafe.local --mobile 9999999999
#   Create a cafe account (prompts for the password).
# - python -m flask users list
#   List all accounts.
#
# Sessions:
# - python -m flask sessions list --email ada@cafe.local
#   List active sessions of an account.
# - python -m flask sessions revoke --email ada@cafe.local [--user-agent "Mozilla/5.0 ..."]
#   Revoke one device's sessions, or every session when --user-agent is omitted.
#
# Maintenance:
# - python -m flask maintenance cleanup --retention-days 30
#   Delete expired OTPs and reset tokens, and sessions dead for longer than the window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import maintenance_service, session_service
from .services.auth_service import create_user, DuplicateUserError, PasswordValidationError


@click.group('users')
def users_group():
    """Account inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--first-name', prompt=True, help='First name')
@click.option('--last-name', prompt=True, help='Last name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--mobile', prompt=True, help='Mobile number (max 15 chars)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(first_name, last_name, email, mobile, password):
    """
    Create a cafe account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email.strip().lower(),
            mobile=mobile.strip(),
            password=password,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        raise SystemExit(1)
    except DuplicateUserError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user {user.email} (ID: {user.unique_id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all accounts."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'Unique ID':<38} {'Name':<25} {'Email':<25} {'Mobile'}")
    click.echo("="*100)
    for user in users:
        name = f"{user.first_name} {user.last_name}"
        click.echo(f"{user.unique_id:<38} {name:<25} {user.email:<25} {user.mobile}")
    click.echo("")


def _user_by_email(email: str) -> User:
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo(f"FAIL No user with email '{email}'")
        raise SystemExit(1)
    return user


@click.group('sessions')
def sessions_group():
    """Device session inspection and revocation."""


@sessions_group.command('list')
@click.option('--email', required=True, help='Account email')
@with_appcontext
def list_sessions_cli(email):
    """List active sessions of an account."""
    user = _user_by_email(email)
    sessions = session_service.get_active_sessions(user.unique_id)
    if not sessions:
        click.echo("No active sessions.")
        return
    for s in sessions:
        click.echo(f"{s.session_id}  {s.login_type:<7} {s.ip_address:<16} expires {s.expires_at}  {s.user_agent}")


@sessions_group.command('revoke')
@click.option('--email', required=True, help='Account email')
@click.option('--user-agent', default=None, help='Only revoke this device (default: all devices)')
@with_appcontext
def revoke_sessions_cli(email, user_agent):
    """Revoke sessions of an account."""
    user = _user_by_email(email)
    if user_agent:
        revoked = session_service.revoke_session(user.unique_id, user_agent)
        click.echo("PASS Sessions revoked" if revoked else "No active session for that device.")
        return

    count = session_service.revoke_all_user_sessions(user.unique_id)
    db.session.commit()
    click.echo(f"PASS Revoked {count} session(s)")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_cli(retention_days):
    """
    Purge expired credentials and dead sessions.

    Default retention for revoked/expired sessions: 30 days.
    """
    deleted = maintenance_service.cleanup(retention_days=retention_days)
    for table, count in deleted.items():
        click.echo(f"Deleted {count} rows from {table}.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(users_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(maintenance_group)
