# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/medequip/cli.py
# Commands Legend (run from the repository root):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app medequip <group> <command> [options]
#
# System bootstrap/repair:
# - flask --app medequip system init-db
#   Create the state_blobs table if it does not exist (use `flask db upgrade` for migrations).
# - flask --app medequip system reset-state --yes
#   DEV/TEST only: delete every stored collection.
#
# State inspection/bootstrap:
# - flask --app medequip state seed
#   Load the sample departments, categories, equipment and notifications into an empty store.
# - flask --app medequip state stats
#   Print equipment status counts and per-department utilization.
# - flask --app medequip state recalc-stats
#   Recompute and store the stats caches.
#
# Maintenance:
# - flask --app medequip maintenance notify-due --days 14
#   Add notifications for equipment coming due for maintenance.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services.blob_store import SqlBlobStore
from .services.equipment_state import get_equipment_state, reset_equipment_state


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create the state table."""
    from . import models  # noqa: F401
    db.create_all()
    click.echo("PASS State table ready")


@system_group.command('reset-state')
@click.option('--yes', is_flag=True, help='Confirm deletion of all stored collections')
@with_appcontext
def reset_state(yes):
    """Delete every stored collection (dev/test only)."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    store = SqlBlobStore()
    keys = store.keys()
    for key in keys:
        store.delete(key)
    reset_equipment_state()
    click.echo(f"PASS Removed {len(keys)} stored collection(s)")


@click.group('state')
def state_group():
    """Equipment state inspection and seeding."""


@state_group.command('seed')
@with_appcontext
def seed_state():
    """Load sample data into an empty store."""
    state = get_equipment_state()
    if not state.is_empty():
        click.echo(
            f"SKIP Store already has {len(state.departments)} department(s), "
            f"{len(state.equipment)} equipment, {len(state.notifications)} notification(s)"
        )
        return
    if not state.seed_sample_data():
        click.echo("FAIL Could not save sample data")
        raise SystemExit(1)
    click.echo(
        f"PASS Seeded {len(state.departments)} departments, {len(state.categories)} categories, "
        f"{len(state.equipment)} equipment, {len(state.notifications)} notifications"
    )


@state_group.command('stats')
@with_appcontext
def show_stats():
    """Print equipment and department statistics."""
    state = get_equipment_state()
    stats = state.stats or {}
    click.echo("Equipment:")
    for field in ("total", "available", "inUse", "maintenance", "repair", "retired", "lost", "damaged"):
        click.echo(f"  {field:<12} {stats.get(field, 0)}")
    click.echo("Departments:")
    for row in state.department_stats:
        click.echo(
            f"  {row['departmentName']:<20} equipment={row['equipmentCount']} "
            f"available={row['availableCount']} in_use={row['inUseCount']} "
            f"maintenance={row['maintenanceCount']} utilization={row['utilizationRate']:.1f}%"
        )


@state_group.command('recalc-stats')
@with_appcontext
def recalc_stats():
    """Recompute the stats caches from the stored collections."""
    state = get_equipment_state()
    if not state.refresh_data():
        click.echo("FAIL Could not recompute stats")
        raise SystemExit(1)
    click.echo(f"PASS Stats recomputed for {len(state.equipment)} equipment")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('notify-due')
@click.option('--days', type=int, default=None, help='Look-ahead window in days')
@with_appcontext
def notify_due(days):
    """Add notifications for equipment coming due for maintenance."""
    if days is None:
        days = current_app.config["MEDEQUIP_MAINTENANCE_DAYS"]
    state = get_equipment_state()
    added = state.notify_maintenance_due(days)
    if added is None:
        click.echo("FAIL Could not save maintenance notifications")
        raise SystemExit(1)
    click.echo(f"PASS Added {added} maintenance notification(s) (window: {days} days)")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(state_group)
    app.cli.add_command(maintenance_group)
