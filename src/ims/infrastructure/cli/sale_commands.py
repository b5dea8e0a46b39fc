"""CLI commands for sales."""

from __future__ import annotations

from datetime import datetime

import click

from ims.application.bulk_sale import BulkSaleHandler
from ims.application.delete_sale import DeleteSaleHandler
from ims.application.dto import LineSpec
from ims.application.record_sale import RecordSaleHandler
from ims.application.update_sale import UpdateSaleHandler
from ims.domain.exceptions import DomainException
from ims.domain.model.value_objects import UnitType
from ims.infrastructure.cli.context import AppContext, pass_app, parse_line_items

_UNIT_CHOICE = click.Choice([u.value for u in UnitType], case_sensitive=False)


@click.command("record")
@click.option("--customer", required=True, help="Customer ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int)
@click.option("--price", required=True, help="Unit price.")
@click.option("--unit", default="PIECE", type=_UNIT_CHOICE, show_default=True)
@click.option("--date", "sale_date", type=click.DateTime(["%Y-%m-%d"]), default=None)
@click.option("--notes", default="")
@pass_app
def sale_record(
    app: AppContext,
    customer: str,
    product_id: str,
    quantity: int,
    price: str,
    unit: str,
    sale_date: datetime | None,
    notes: str,
) -> None:
    """Record a sale (deducts from stock)."""
    s = app.services
    handler = RecordSaleHandler(s.sales, s.products, s.ledger)

    try:
        sale = handler.handle(
            customer_id=customer,
            product_id=product_id,
            quantity=quantity,
            unit_price=price,
            unit_type=unit,
            sale_date=sale_date.date() if sale_date else None,
            notes=notes,
            actor_id=app.actor_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Sale #{sale.id} recorded: -{sale.actual_quantity} "
        f"of product {sale.product_id} ({sale.total_amount})"
    )


@click.command("update")
@click.option("--id", "sale_id", required=True, type=int)
@click.option("--quantity", type=int, default=None)
@click.option("--price", default=None, help="Unit price.")
@click.option("--unit", type=_UNIT_CHOICE, default=None)
@click.option("--notes", default=None)
@pass_app
def sale_update(
    app: AppContext,
    sale_id: int,
    quantity: int | None,
    price: str | None,
    unit: str | None,
    notes: str | None,
) -> None:
    """Edit a sale; stock follows any quantity change."""
    s = app.services
    handler = UpdateSaleHandler(s.sales, s.products, s.ledger)

    try:
        handler.handle(
            sale_id, quantity=quantity, unit_price=price, unit_type=unit,
            notes=notes, actor_id=app.actor_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Sale #{sale_id} updated.")


@click.command("delete")
@click.option("--id", "sale_id", required=True, type=int)
@pass_app
def sale_delete(app: AppContext, sale_id: int) -> None:
    """Delete a sale (puts its quantity back into stock)."""
    handler = DeleteSaleHandler(app.services.sales, app.services.ledger)

    try:
        handler.handle(sale_id, actor_id=app.actor_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Sale #{sale_id} deleted.")


@click.command("bulk")
@click.option("--customer", required=True, help="Customer ID.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty:Price[:Unit],...'.")
@click.option("--date", "sale_date", type=click.DateTime(["%Y-%m-%d"]), default=None)
@click.option("--notes", default="")
@pass_app
def sale_bulk(
    app: AppContext,
    customer: str,
    items: str,
    sale_date: datetime | None,
    notes: str,
) -> None:
    """Record several sales to one customer at once."""
    lines = [LineSpec(*item) for item in parse_line_items(items)]
    s = app.services
    handler = BulkSaleHandler(s.sales, s.products, s.ledger)

    try:
        sales = handler.handle(
            customer, lines, sale_date=sale_date.date() if sale_date else None,
            notes=notes, actor_id=app.actor_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{len(sales)} sales recorded.")
