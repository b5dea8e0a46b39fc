"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from ims.application.add_product import AddProductHandler
from ims.application.show_inventory import ShowInventoryHandler
from ims.domain.exceptions import DomainException
from ims.infrastructure.cli.context import AppContext, pass_app


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Unit price (e.g. 15.00).")
@click.option("--stock", default=0, type=int, show_default=True, help="Opening stock in pieces.")
@click.option("--min-stock", default=0, type=int, show_default=True, help="Reorder threshold.")
@click.option("--pieces-per-box", default=1, type=int, show_default=True)
@pass_app
def product_add(
    app: AppContext, name: str, price: str, stock: int, min_stock: int, pieces_per_box: int
) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(app.services.products, app.services.ledger)

    try:
        product = handler.handle(
            name=name,
            price=price,
            opening_stock=stock,
            min_stock=min_stock,
            pieces_per_box=pieces_per_box,
            actor_id=app.actor_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product #{product.id} '{product.name}' added at {product.price} "
        f"(stock {product.stock_quantity})"
    )


def _echo_inventory(lines) -> None:
    click.echo(f"{'ID':<6} {'Product':<20} {'Stock':>8} {'Min':>6} {'Status':>7}")
    click.echo("-" * 51)
    for line in lines:
        status = "Low" if line.low_stock else "OK"
        click.echo(
            f"{line.product_id:<6} {line.product_name:<20} "
            f"{line.stock:>8} {line.min_stock:>6} {status:>7}"
        )


@click.command("list")
@pass_app
def product_list(app: AppContext) -> None:
    """List all products with their stock levels."""
    lines = ShowInventoryHandler(app.services.products).handle()

    if not lines:
        click.echo("No products found.")
        return
    _echo_inventory(lines)


@click.command("low-stock")
@pass_app
def product_low_stock(app: AppContext) -> None:
    """List products at or below their minimum stock."""
    lines = ShowInventoryHandler(app.services.products).handle(low_stock_only=True)

    if not lines:
        click.echo("No products are low on stock.")
        return
    _echo_inventory(lines)
