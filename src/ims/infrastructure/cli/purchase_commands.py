"""CLI commands for purchases and purchase returns."""

from __future__ import annotations

import click

from ims.application.bulk_purchase import BulkPurchaseHandler
from ims.application.create_purchase_return import CreatePurchaseReturnHandler
from ims.application.delete_purchase import DeletePurchaseHandler
from ims.application.dto import LineSpec
from ims.application.record_purchase import RecordPurchaseHandler
from ims.application.update_purchase import UpdatePurchaseHandler
from ims.application.update_purchase_return import (
    UpdatePurchaseReturnHandler,
    UpdateReturnStatusHandler,
)
from ims.domain.exceptions import DomainException
from ims.domain.model.transactions import ReturnStatus
from ims.domain.model.value_objects import UnitType
from ims.infrastructure.cli.context import AppContext, pass_app, parse_line_items

_UNIT_CHOICE = click.Choice([u.value for u in UnitType], case_sensitive=False)
_STATUS_CHOICE = click.Choice([s.value for s in ReturnStatus], case_sensitive=False)


@click.command("record")
@click.option("--supplier", required=True, help="Supplier ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int)
@click.option("--price", required=True, help="Unit price.")
@click.option("--unit", default="PIECE", type=_UNIT_CHOICE, show_default=True)
@click.option("--reference", default="", help="Supplier reference number.")
@click.option("--notes", default="")
@pass_app
def purchase_record(
    app: AppContext,
    supplier: str,
    product_id: str,
    quantity: int,
    price: str,
    unit: str,
    reference: str,
    notes: str,
) -> None:
    """Record a purchase (adds to stock)."""
    s = app.services
    handler = RecordPurchaseHandler(s.purchases, s.products, s.ledger)

    try:
        purchase = handler.handle(
            supplier_id=supplier,
            product_id=product_id,
            quantity=quantity,
            unit_price=price,
            reference_number=reference,
            unit_type=unit,
            notes=notes,
            actor_id=app.actor_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Purchase #{purchase.id} recorded: +{purchase.base_quantity} "
        f"of product {purchase.product_id} ({purchase.total_amount})"
    )


@click.command("update")
@click.option("--id", "purchase_id", required=True, type=int)
@click.option("--quantity", type=int, default=None)
@click.option("--price", default=None, help="Unit price.")
@click.option("--unit", type=_UNIT_CHOICE, default=None)
@click.option("--reference", default=None)
@click.option("--notes", default=None)
@pass_app
def purchase_update(
    app: AppContext,
    purchase_id: int,
    quantity: int | None,
    price: str | None,
    unit: str | None,
    reference: str | None,
    notes: str | None,
) -> None:
    """Edit a purchase; stock follows any quantity change."""
    s = app.services
    handler = UpdatePurchaseHandler(s.purchases, s.returns, s.products, s.ledger)

    try:
        handler.handle(
            purchase_id,
            quantity=quantity,
            unit_price=price,
            unit_type=unit,
            reference_number=reference,
            notes=notes,
            actor_id=app.actor_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Purchase #{purchase_id} updated.")


@click.command("delete")
@click.option("--id", "purchase_id", required=True, type=int)
@pass_app
def purchase_delete(app: AppContext, purchase_id: int) -> None:
    """Delete a purchase (takes its quantity back out of stock)."""
    s = app.services
    handler = DeletePurchaseHandler(s.purchases, s.returns, s.ledger)

    try:
        handler.handle(purchase_id, actor_id=app.actor_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Purchase #{purchase_id} deleted.")


@click.command("bulk")
@click.option("--supplier", required=True, help="Supplier ID.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty:Price[:Unit],...'.")
@click.option("--reference", default="", help="Supplier reference number.")
@click.option("--notes", default="")
@pass_app
def purchase_bulk(
    app: AppContext, supplier: str, items: str, reference: str, notes: str
) -> None:
    """Record several purchases from one supplier at once."""
    lines = [LineSpec(*item) for item in parse_line_items(items)]
    s = app.services
    handler = BulkPurchaseHandler(s.purchases, s.products, s.ledger)

    try:
        purchases = handler.handle(
            supplier, lines, reference_number=reference, notes=notes,
            actor_id=app.actor_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{len(purchases)} purchases recorded.")


@click.command("create")
@click.option("--purchase", "purchase_id", required=True, type=int)
@click.option("--quantity", required=True, type=int, help="Pieces sent back.")
@click.option("--reason", default="")
@click.option("--status", default="WAITING", type=_STATUS_CHOICE, show_default=True)
@pass_app
def return_create(
    app: AppContext, purchase_id: int, quantity: int, reason: str, status: str
) -> None:
    """Return goods of a purchase to its supplier (removes from stock)."""
    s = app.services
    handler = CreatePurchaseReturnHandler(s.returns, s.purchases, s.ledger)

    try:
        purchase_return = handler.handle(
            purchase_id, quantity, reason=reason, status=status,
            actor_id=app.actor_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Return #{purchase_return.id} created ({purchase_return.status.value}).")


@click.command("update")
@click.option("--id", "return_id", required=True, type=int)
@click.option("--quantity", type=int, default=None)
@click.option("--reason", default=None)
@click.option("--status", type=_STATUS_CHOICE, default=None)
@pass_app
def return_update(
    app: AppContext,
    return_id: int,
    quantity: int | None,
    reason: str | None,
    status: str | None,
) -> None:
    """Edit a purchase return."""
    s = app.services
    handler = UpdatePurchaseReturnHandler(s.returns, s.purchases, s.ledger)

    try:
        handler.handle(
            return_id, quantity=quantity, reason=reason, status=status,
            actor_id=app.actor_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Return #{return_id} updated.")


@click.command("status")
@click.option("--id", "return_id", required=True, type=int)
@click.argument("status", type=_STATUS_CHOICE)
@pass_app
def return_status(app: AppContext, return_id: int, status: str) -> None:
    """Mark a return as SENT or CONFIRMED."""
    handler = UpdateReturnStatusHandler(app.services.returns)

    try:
        purchase_return = handler.handle(return_id, status, actor_id=app.actor_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Return #{return_id} is now {purchase_return.status.value}.")
