"""Several processes writing stock through the same JSON data directory.

Each CLI command is its own process, so the JSON stores have to keep the
ledger consistent across processes, not just threads.
"""

import multiprocessing
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path

from ims.domain.model.product import Product
from ims.domain.model.value_objects import Money
from ims.domain.service.stock_ledger_service import StockLedgerService
from ims.infrastructure.persistence.json_movement_log import JsonMovementLog
from ims.infrastructure.persistence.json_product_repository import JsonProductRepository

WORKERS = 4
TICKS = 40


def _ledger(data_dir: Path) -> StockLedgerService:
    return StockLedgerService(
        JsonProductRepository(data_dir / "products.json"),
        JsonMovementLog(data_dir / "stock_movements.json"),
        max_write_retries=1000,
    )


def _tick(data_dir: str, worker: int) -> None:
    ledger = _ledger(Path(data_dir))
    for _ in range(TICKS):
        ledger.adjust_stock("1", 1, f"worker {worker}")


def test_processes_never_lose_updates(tmp_path):
    JsonProductRepository(tmp_path / "products.json").save(
        Product(id="1", name="Widget", price=Money.of("1"))
    )

    with ProcessPoolExecutor(
        max_workers=WORKERS, mp_context=multiprocessing.get_context("spawn")
    ) as pool:
        futures = [pool.submit(_tick, str(tmp_path), w) for w in range(WORKERS)]
        for future in futures:
            future.result()

    ledger = _ledger(tmp_path)
    movements = sorted(ledger.get_history("1"), key=lambda m: m.id)

    assert ledger.current_stock("1") == WORKERS * TICKS
    assert len(movements) == WORKERS * TICKS
    assert ledger.replay("1") == WORKERS * TICKS
    for before, after in zip(movements, movements[1:]):
        assert before.new_quantity == after.previous_quantity
    assert [m.id for m in movements] == list(range(1, WORKERS * TICKS + 1))
