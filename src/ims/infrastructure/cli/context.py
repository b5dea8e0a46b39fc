"""State shared by every CLI command of one invocation."""

from __future__ import annotations

from dataclasses import dataclass

import click

from ims.infrastructure.bootstrap import Services


@dataclass
class AppContext:
    services: Services
    actor_id: str | None


pass_app = click.make_pass_decorator(AppContext)


def parse_line_items(raw: str) -> list[tuple[str, int, str, str]]:
    """Parse '1:3:15.00:BOX,2:5:2.50' into (product_id, qty, price, unit) tuples.

    The unit part is optional and defaults to PIECE.
    """
    lines: list[tuple[str, int, str, str]] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        parts = [p.strip() for p in chunk.split(":")]
        if len(parts) not in (3, 4):
            raise click.BadParameter(
                f"Invalid item format '{chunk}'. "
                "Expected 'ProductId:Quantity:Price[:BOX|PIECE]'."
            )
        product_id, qty_str, price = parts[:3]
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        unit = parts[3] if len(parts) == 4 else "PIECE"
        lines.append((product_id, qty, price, unit))
    return lines
