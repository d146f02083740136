"""
Sheet Export (v1.0.0)
Writes the inventory rows back out following the final variant ordering.
"""
import csv
import io
import logging
from typing import List, Sequence

from grid_service.core.models import InventoryRow
from grid_service.core.synchronizer import group_inventory_rows

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "orden_sabana.csv"


def order_inventory_rows(order: Sequence[str], rows: Sequence[InventoryRow]) -> List[InventoryRow]:
    """
    Reorder rows to follow `order` (group keys).

    Rows of one group keep their original relative order. Rows whose group key
    is not in `order` (including rows without a key) are appended last in
    their original order.
    """
    groups = group_inventory_rows(rows)
    ordered: List[InventoryRow] = []
    seen = set()
    for key in order:
        if key in groups and key not in seen:
            ordered.extend(groups[key])
            seen.add(key)

    unmatched = [row for row in rows if row.group_key not in seen]
    if unmatched:
        logger.info(f"Export: {len(unmatched)} rows without a sorted variant appended last")
    return ordered + unmatched


def render_csv(headers: Sequence[str], rows: Sequence[InventoryRow]) -> str:
    """UTF-8 CSV text with a BOM, header first, every field quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([row.values.get(h, "") for h in headers])
    return "\ufeff" + buffer.getvalue()
