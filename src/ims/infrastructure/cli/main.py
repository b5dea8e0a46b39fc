import logging
from pathlib import Path

import click

from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import build_services
from ims.infrastructure.cli.context import AppContext
from ims.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_low_stock,
)
from ims.infrastructure.cli.purchase_commands import (
    purchase_bulk,
    purchase_delete,
    purchase_record,
    purchase_update,
    return_create,
    return_status,
    return_update,
)
from ims.infrastructure.cli.sale_commands import (
    sale_bulk,
    sale_delete,
    sale_record,
    sale_update,
)
from ims.infrastructure.cli.stock_commands import (
    stock_adjust,
    stock_history,
    stock_reverse,
)
from ims.infrastructure.config import get_settings


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the JSON stores.",
)
@click.option("--user", "actor_id", default=None, help="Who is making the change.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, actor_id: str | None) -> None:
    """IMS: products, purchases, sales and the stock ledger."""
    settings = get_settings()
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir})

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        services = build_services(settings)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    ctx.obj = AppContext(services=services, actor_id=actor_id)


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def stock() -> None:
    """Inspect and correct stock."""


@cli.group()
def purchase() -> None:
    """Manage purchases."""


@cli.group()
def sale() -> None:
    """Manage sales."""


@cli.group("return")
def return_() -> None:
    """Manage returns to suppliers."""


# Register subcommands
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_low_stock)
stock.add_command(stock_adjust)
stock.add_command(stock_history)
stock.add_command(stock_reverse)
purchase.add_command(purchase_bulk)
purchase.add_command(purchase_delete)
purchase.add_command(purchase_record)
purchase.add_command(purchase_update)
sale.add_command(sale_bulk)
sale.add_command(sale_delete)
sale.add_command(sale_record)
sale.add_command(sale_update)
return_.add_command(return_create)
return_.add_command(return_status)
return_.add_command(return_update)
