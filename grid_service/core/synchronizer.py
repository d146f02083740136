"""
Synchronizer (v1.0.0)
Joins catalog entries and inventory rows into one ProductVariant per group key.
"""
import logging
import re
from collections import OrderedDict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from grid_service.core.models import CatalogEntry, InventoryRow, MediaType, ProductVariant
from grid_service.core.normalizer import DEFAULT_NORMALIZER, Normalizer

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Sin Título"
DEFAULT_TYPE = "Sin Tipo"
DEFAULT_AGE = "Sin Edad"
DEFAULT_GENDER = "Sin Género"
DEFAULT_COLOR = "Sin Color"

FAMILY_STOP_WORDS = {"DE", "Y", "A", "CON", "LA", "EL", "LOS", "LAS", "UN", "UNA"}
_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)$")


def parse_new_in_date(value: Optional[str]) -> Optional[date]:
    """Parse a `DD/MM/YYYY` arrival date; `#N/A`, blanks and bad dates are None."""
    value = (value or "").strip()
    if not value or value.upper() == "#N/A":
        return None
    try:
        return datetime.strptime(value, "%d/%m/%Y").date()
    except ValueError:
        return None


def _is_number(word: str) -> bool:
    return bool(_NUMBER.match(word))


def identify_family_name(title: str, garment_type: str) -> Optional[str]:
    """
    Last significant word of the title, used to group product families.

    Skips connectors, the garment type itself, numbers and words of two
    characters or less.
    """
    stop_words = FAMILY_STOP_WORDS | {garment_type.upper()}
    words = [
        word for word in title.upper().split(" ")
        if word not in stop_words and not _is_number(word) and len(word) > 2
    ]
    return words[-1] if words else None


def group_inventory_rows(rows: Iterable[InventoryRow]) -> "OrderedDict[str, List[InventoryRow]]":
    """Group rows by stripped group key, in first-seen order. Rows without a key are dropped."""
    groups: "OrderedDict[str, List[InventoryRow]]" = OrderedDict()
    for row in rows:
        key = row.group_key
        if not key:
            continue
        groups.setdefault(key, []).append(row)
    return groups


def classify_media(row: InventoryRow):
    """Media type and campaign name from the representative row. CAMPAIGN > MODEL > VIDEO > PRODUCT."""
    if row.campaign_photo:
        return MediaType.CAMPAIGN, row.campaign_photo
    if row.model_photo:
        return MediaType.MODEL, None
    if row.video:
        return MediaType.VIDEO, None
    return MediaType.PRODUCT, None


def build_variant(
    group_key: str,
    rows: List[InventoryRow],
    entry: Optional[CatalogEntry],
    normalizer: Normalizer = DEFAULT_NORMALIZER,
) -> ProductVariant:
    """Aggregate one group of rows into a variant."""
    representative = rows[0]

    title = representative.title or DEFAULT_TITLE
    garment_type = representative.garment_type or DEFAULT_TYPE
    color = representative.color or DEFAULT_COLOR
    media_type, campaign_name = classify_media(representative)

    return ProductVariant(
        group_key=group_key,
        title=title,
        description=entry.description if entry else "",
        image_link=entry.image_link if entry else "",
        commercial_code=representative.commercial_code,
        color=color,
        sizes=tuple(sorted({r.size for r in rows if r.size})),
        garment_type=garment_type,
        age=representative.age or DEFAULT_AGE,
        gender=representative.gender or DEFAULT_GENDER,
        stock_ecommerce=sum(r.stock_ecommerce for r in rows),
        stock_stores=sum(r.stock_stores for r in rows),
        ranking_analytics=representative.ranking_analytics,
        ranking_stores=representative.ranking_stores,
        new_in_date=parse_new_in_date(representative.new_in),
        media_type=media_type,
        has_stock=any(r.stock_ecommerce > 0 or r.stock_stores > 0 for r in rows),
        has_price=any(r.price_cents > 0 for r in rows),
        color_family=normalizer.normalize_color(color),
        garment_category=normalizer.normalize_type(garment_type),
        vibe=normalizer.detect_vibe(title, garment_type),
        campaign_name=campaign_name,
        family_name=identify_family_name(title, garment_type),
        image_loaded=any(r.image_loaded for r in rows),
    )


def synchronize(
    catalog: List[CatalogEntry],
    rows: List[InventoryRow],
    normalizer: Normalizer = DEFAULT_NORMALIZER,
) -> List[ProductVariant]:
    """
    Join both feeds into variants, one per group key in first-seen order.

    A group with no catalog match still yields a variant with empty media
    fields; its validity is decided later by the tail classifier.
    """
    by_key: Dict[str, CatalogEntry] = {entry.group_key: entry for entry in catalog}
    groups = group_inventory_rows(rows)

    variants = [
        build_variant(key, group_rows, by_key.get(key), normalizer)
        for key, group_rows in groups.items()
    ]

    matched = sum(1 for key in groups if key in by_key)
    logger.info(
        f"Synchronized {len(variants)} variants from {len(rows)} rows "
        f"({matched} matched to catalog)"
    )
    return variants
