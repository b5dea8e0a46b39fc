"""CLI commands for the stock ledger."""

from __future__ import annotations

from datetime import datetime

import click

from ims.application.adjust_stock import AdjustStockHandler, ReverseMovementHandler
from ims.application.show_stock_history import ShowStockHistoryHandler
from ims.domain.exceptions import DomainException
from ims.domain.model.stock_movement import MovementType
from ims.infrastructure.cli.context import AppContext, pass_app


def _echo_movement(m) -> None:
    click.echo(
        f"#{m.id:<5} {m.created_at[:19]:<20} {m.movement_type:<11} "
        f"{m.quantity:>+7} {m.previous_quantity:>7} {m.new_quantity:>7}  {m.reference}"
    )


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Signed change, e.g. -3.")
@click.option("--reason", required=True, help="Why stock is being corrected.")
@pass_app
def stock_adjust(app: AppContext, product_id: str, quantity: int, reason: str) -> None:
    """Manually correct a product's stock."""
    handler = AdjustStockHandler(app.services.ledger)

    try:
        movement = handler.handle(product_id, quantity, reason, actor_id=app.actor_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Stock of product {product_id}: "
        f"{movement.previous_quantity} -> {movement.new_quantity}"
    )


@click.command("reverse")
@click.option("--id", "movement_id", required=True, type=int, help="Movement ID.")
@click.option("--notes", default=None, help="Reason for the reversal.")
@pass_app
def stock_reverse(app: AppContext, movement_id: int, notes: str | None) -> None:
    """Undo a stock movement by appending its negation."""
    handler = ReverseMovementHandler(app.services.ledger)

    try:
        movement = handler.handle(movement_id, notes=notes, actor_id=app.actor_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Movement #{movement_id} reversed by #{movement.id}.")


@click.command("history")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--start", type=click.DateTime(), default=None, help="Earliest time (UTC).")
@click.option("--end", type=click.DateTime(), default=None, help="Latest time (UTC).")
@click.option(
    "--type",
    "movement_type",
    type=click.Choice([t.value for t in MovementType], case_sensitive=False),
    default=None,
)
@pass_app
def stock_history(
    app: AppContext,
    product_id: str,
    start: datetime | None,
    end: datetime | None,
    movement_type: str | None,
) -> None:
    """Show a product's stock movements, newest first."""
    handler = ShowStockHistoryHandler(app.services.ledger)

    try:
        movements = handler.handle(
            product_id, start=start, end=end, movement_type=movement_type
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not movements:
        click.echo("No stock movements found.")
        return

    click.echo(
        f"{'ID':<6} {'When':<20} {'Type':<11} {'Change':>7} {'Before':>7} {'After':>7}  Reference"
    )
    click.echo("-" * 80)
    for m in movements:
        _echo_movement(m)
