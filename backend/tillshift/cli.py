# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/tillshift/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to tillshift (PowerShell: $env:FLASK_APP="tillshift").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Operators:
# - python -m flask operators create --username alice --role cashier
# - python -m flask operators list
#
# Shifts:
# - python -m flask shifts list --status OPEN --limit 20
#
# Products:
# - python -m flask products create --sku COLA-330 --name "Cola 330ml" --price-cents 250 --stock 48
# - python -m flask products low-stock

import click
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from .extensions import db
from .models import Operator, Product
from .permissions import ROLES
from .services import shift_service, stock_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete.")


@click.group('operators')
def operators_group():
    """Operator inspection and bootstrap commands."""


@operators_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_operator_cli(username, role):
    """Create a till operator and print its id (used as X-Operator-Id)."""
    operator = Operator(username=username, role=role)
    db.session.add(operator)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        click.echo(f"FAIL Operator '{username}' already exists")
        raise SystemExit(1)

    click.echo(f"PASS Created operator '{username}' ({role}) with id {operator.id}")


@operators_group.command('list')
@with_appcontext
def list_operators_cli():
    """List all operators with role and active status."""
    operators = db.session.query(Operator).order_by(Operator.username).all()

    if not operators:
        click.echo("No operators found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<38} {'Username':<20} {'Role':<10} {'Active'}")
    click.echo("="*80)

    for operator in operators:
        active_str = "Yes" if operator.is_active else "No"
        click.echo(f"{operator.id:<38} {operator.username:<20} {operator.role:<10} {active_str}")

    click.echo("="*80 + "\n")


@click.group('shifts')
def shifts_group():
    """Shift inspection commands."""


@shifts_group.command('list')
@click.option('--operator-id', help='Filter by operator ID')
@click.option('--status', type=click.Choice(['OPEN', 'CLOSED']), help='Filter by status')
@click.option('--limit', type=int, default=20, help='Max shifts to show')
@with_appcontext
def list_shifts_cli(operator_id, status, limit):
    """
    List shifts, newest first.

    Example:
        flask shifts list
        flask shifts list --status OPEN
    """
    shifts = shift_service.list_shifts(operator_id=operator_id, status=status, limit=limit)

    if not shifts:
        click.echo("No shifts found.")
        return

    click.echo("\n" + "="*120)
    click.echo(f"{'ID':<38} {'Operator':<15} {'Status':<8} {'Opened':<20} {'Total':<12} {'Discrepancy':<12} {'Notes'}")
    click.echo("="*120)

    for shift in shifts:
        operator = db.session.get(Operator, shift.operator_id)
        username = operator.username if operator else shift.operator_id[:15]

        discrepancy_str = "-"
        if shift.discrepancy_cents is not None:
            discrepancy_str = f"${shift.discrepancy_cents / 100:+.2f}"

        notes = shift.notes[:30] if shift.notes else "-"

        click.echo(f"{shift.id:<38} {username:<15} {shift.status:<8} "
                   f"{str(shift.opened_at)[:19]:<20} ${shift.total_sales_cents / 100:<11.2f} "
                   f"{discrepancy_str:<12} {notes}")

    click.echo("="*120 + "\n")


@click.group('products')
def products_group():
    """Product stock commands."""


@products_group.command('create')
@click.option('--sku', required=True, help='Unique SKU')
@click.option('--name', required=True, help='Product name')
@click.option('--price-cents', type=click.IntRange(min=0), required=True, help='Unit price in cents')
@click.option('--stock', type=int, default=0, help='Initial stock on hand')
@click.option('--low-stock-threshold', type=click.IntRange(min=0), default=0, help='Low stock threshold (0 = off)')
@with_appcontext
def create_product_cli(sku, name, price_cents, stock, low_stock_threshold):
    """Create a catalog product with an initial stock level."""
    product = Product(
        sku=sku,
        name=name,
        price_cents=price_cents,
        stock=stock,
        low_stock_threshold=low_stock_threshold,
    )
    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        click.echo(f"FAIL Product with SKU '{sku}' already exists")
        raise SystemExit(1)

    click.echo(f"PASS Created product '{name}' ({sku}) with id {product.id}")


@products_group.command('low-stock')
@with_appcontext
def low_stock_cli():
    """List products at or below their low stock threshold."""
    products = stock_service.list_low_stock()

    if not products:
        click.echo("No products are low on stock.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'SKU':<20} {'Name':<35} {'Stock':<8} {'Threshold'}")
    click.echo("="*80)

    for product in products:
        click.echo(f"{product.sku:<20} {product.name:<35} {product.stock:<8} {product.low_stock_threshold}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(operators_group)
    app.cli.add_command(shifts_group)
    app.cli.add_command(products_group)
