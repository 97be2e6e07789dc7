# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and one default user per role.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username admin --email admin@stockroom.local --password "Password123!" --role admin
#   Create a user (prompts if options are omitted).
#
# Permission inspection:
# - python -m flask perms list [--role staff] [--category TRADES]
#   List permission codes, optionally for one role or category.
# - python -m flask perms check admin DELETE_PRODUCTS
#   Check whether a user has a permission.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import ROLES, User
from .permissions import (
    PermissionCategory,
    describe_permission,
    get_all_permission_codes,
    get_permissions_by_category,
    get_role_permissions,
    is_known_permission,
)
from .services.auth_service import PasswordValidationError, create_user
from .services.permission_service import user_permissions
from .validation import ConflictError, ValidationError

DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize Stockroom: create tables and one default user per role.

    Users: admin, staff, coordinator, user (<name>@stockroom.local)
    All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing Stockroom...")

    db.create_all()
    click.echo("PASS Tables ready")

    click.echo("\nUSERS Creating default users...")
    for role in ROLES:
        existing = db.session.query(User).filter_by(username=role).first()
        if existing:
            click.echo(f"WARN  User '{role}' already exists, skipping...")
            continue
        try:
            create_user(
                username=role,
                email=f"{role}@stockroom.local",
                password=DEFAULT_PASSWORD,
                role=role,
            )
            click.echo(f"PASS Created user: {role} ({role}@stockroom.local) with role '{role}'")
        except (PasswordValidationError, ConflictError, ValidationError) as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create user '{role}': {e}")

    click.echo("\n" + "=" * 60)
    click.echo("DONE Stockroom Initialized Successfully!")
    click.echo("=" * 60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for role in ROLES:
        click.echo(f"   {role:<11} -> {role}@stockroom.local / {DEFAULT_PASSWORD}")
    click.echo("")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset (all tables dropped and recreated)")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role and active status."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found. Run 'flask system init' first.")
        return

    click.echo(f"\n{'ID':<5} {'Username':<20} {'Email':<32} {'Role':<12} {'Active':<6}")
    click.echo("-" * 80)
    for u in users:
        click.echo(f"{u.id:<5} {u.username:<20} {u.email:<32} {u.role:<12} {'yes' if u.is_active else 'no':<6}")
    click.echo(f"\nTotal: {len(users)} user(s)")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES), default='user', show_default=True)
@click.option('--first-name', default=None)
@click.option('--last-name', default=None)
@with_appcontext
def create_user_command(username, email, password, role, first_name, last_name):
    """Create a user account."""
    try:
        user = create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            first_name=first_name,
            last_name=last_name,
        )
    except (PasswordValidationError, ConflictError, ValidationError) as e:
        db.session.rollback()
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user {user.username} (ID: {user.id}) with role '{user.role}'")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(ROLES), default=None)
@click.option('--category', type=click.Choice(PermissionCategory.ALL), default=None)
@with_appcontext
def list_perms(role, category):
    """List permission codes (optionally for one role or category)."""
    if category:
        perms = get_permissions_by_category(category)
    else:
        perms = [describe_permission(code) for code in get_all_permission_codes()]

    if role:
        granted = get_role_permissions(role)
        perms = [p for p in perms if p["code"] in granted]

    for p in perms:
        click.echo(f"{p['code']:<20} {p['category']:<10} {p['description']}")
    click.echo(f"\nTotal: {len(perms)} permission(s)")


@perms_group.command('check')
@click.argument('username')
@click.argument('permission_code')
@with_appcontext
def check_perm(username, permission_code):
    """Check whether a user has a permission."""
    if not is_known_permission(permission_code):
        click.echo(f"FAIL Unknown permission: {permission_code}")
        raise SystemExit(1)

    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User not found: {username}")
        raise SystemExit(1)

    has_it = permission_code in user_permissions(user)
    click.echo(f"{'PASS' if has_it else 'FAIL'} {username} ({user.role}) "
               f"{'has' if has_it else 'does not have'} {permission_code}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
