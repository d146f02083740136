"""
Feed Decoders (v1.0.0)
Decodes the catalog XML feed and the inventory CSV feed into typed records.

Decoding never raises on bad content: unparseable markup yields an empty
catalog, malformed CSV lines are dropped and unparseable numbers fall back to
sentinel defaults.
"""
import csv
import io
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

from grid_service.core.models import CatalogEntry, InventoryRow, UNRANKED

logger = logging.getLogger(__name__)

GROUP_KEY_LENGTH = 10
COMMERCIAL_CODE_LENGTH = 8

# Sentinel used by the spreadsheet export for "no value".
NA_VALUE = "#N/A"


# ==================== INVENTORY COLUMNS ====================

COL_COMMERCIAL_CODE = "Codigo Comercial"
COL_AGE = "Edad"
COL_GENDER = "Género"
COL_GROUP_KEY = "Grupo (Fórmula)"
COL_SKU = "SKU"
COL_GARMENT_TYPE = "Tipo Prenda"
COL_TITLE = "TITULO"
COL_RANKING_ANALYTICS = "Ranking Analytics"
COL_RANKING_STORES = ("Ranking Locales", "Rankign Locales")
COL_STOCK_ECOMMERCE = "STOCK ECOMMERCE"
COL_STOCK_STORES = "STOCK LOCALES"
COL_IMAGE_LOADED = "IMAGEN CARGADA"
COL_COLOR = "COLOR"
COL_SIZE = "TALLE"
COL_PRICE = "PRICE_CENTS"
COL_NEW_IN = "NEW IN"
COL_CAMPAIGN = "FOTO CAMPAÑA"
COL_MODEL = "FOTO MODELO"
COL_VIDEO = "VIDEO"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class InventoryFeed:
    """Decoded inventory feed. `headers` keeps the original column order for re-export."""
    headers: List[str] = field(default_factory=list)
    rows: List[InventoryRow] = field(default_factory=list)
    dropped: int = 0


# ==================== VALUE PARSING ====================

def decode_text(content: Union[bytes, str]) -> str:
    """Decode uploaded bytes as UTF-8 (BOM tolerated), falling back to Latin-1."""
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("Feed is not valid UTF-8, decoding as latin-1")
        return content.decode("latin-1")


def parse_int(value: Optional[str]) -> Optional[int]:
    """Leading integer of `value` (so "12.5" -> 12, "7 u." -> 7), or None."""
    if not value:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def parse_ranking(value: Optional[str]) -> int:
    """Ranking; missing, unparseable or non-positive values are unranked."""
    parsed = parse_int(value)
    if parsed is None or parsed <= 0:
        return UNRANKED
    return parsed


def parse_quantity(value: Optional[str]) -> int:
    """Stock or price; unparseable values are 0 and negatives clamp to 0."""
    parsed = parse_int(value)
    if parsed is None:
        return 0
    return max(parsed, 0)


def clean_reference(value: Optional[str]) -> str:
    """Optional text reference with the #N/A sentinel mapped to empty."""
    value = (value or "").strip()
    return "" if value.upper() == NA_VALUE else value


# ==================== CATALOG FEED ====================

def derive_codes_from_url(url: str) -> Tuple[str, str]:
    """
    Derive (group_key, commercial_code) from a media URL.

    The file name prefix before its first underscore carries the codes:
    `.../1234567890XL_front.jpg` -> ("1234567890", "12345678").
    """
    if not url:
        return "", ""
    path = urlparse(url.strip()).path or url.strip()
    filename = path.rstrip("/").split("/")[-1]
    prefix = filename.split("_", 1)[0]
    return prefix[:GROUP_KEY_LENGTH], prefix[:COMMERCIAL_CODE_LENGTH]


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> str:
    for child in element:
        if _local_name(child.tag) == name:
            return (child.text or "").strip()
    return ""


def parse_catalog_xml(content: Union[bytes, str]) -> List[CatalogEntry]:
    """
    Decode a product feed (RSS/Atom-style `<item>` elements, namespaced or not).

    Each item contributes id, title, description and image_link; entries whose
    derived group key is empty are discarded. Invalid markup yields [].
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        logger.warning(f"Catalog XML could not be parsed: {e}")
        return []

    entries = []
    for element in root.iter():
        if _local_name(element.tag) not in ("item", "entry"):
            continue

        image_link = _child_text(element, "image_link")
        group_key, commercial_code = derive_codes_from_url(image_link)
        if not group_key:
            continue

        entries.append(CatalogEntry(
            id=_child_text(element, "id"),
            title=_child_text(element, "title"),
            description=_child_text(element, "description"),
            image_link=image_link,
            group_key=group_key,
            commercial_code=commercial_code,
        ))

    logger.info(f"Catalog decoded: {len(entries)} entries")
    return entries


# ==================== INVENTORY FEED ====================

def _first_present(values: Dict[str, str], names) -> str:
    for name in names:
        if name in values:
            return values[name]
    return ""


def _row_from_values(values: Dict[str, str]) -> InventoryRow:
    return InventoryRow(
        group_key_raw=values.get(COL_GROUP_KEY, ""),
        commercial_code=values.get(COL_COMMERCIAL_CODE, ""),
        sku=values.get(COL_SKU, ""),
        garment_type=values.get(COL_GARMENT_TYPE, ""),
        age=values.get(COL_AGE, ""),
        gender=values.get(COL_GENDER, ""),
        title=values.get(COL_TITLE, ""),
        color=values.get(COL_COLOR, ""),
        size=values.get(COL_SIZE, ""),
        stock_ecommerce=parse_quantity(values.get(COL_STOCK_ECOMMERCE)),
        stock_stores=parse_quantity(values.get(COL_STOCK_STORES)),
        ranking_analytics=parse_ranking(values.get(COL_RANKING_ANALYTICS)),
        ranking_stores=parse_ranking(_first_present(values, COL_RANKING_STORES)),
        price_cents=parse_quantity(values.get(COL_PRICE)),
        image_loaded=values.get(COL_IMAGE_LOADED, "").strip().upper() == "SI",
        new_in=values.get(COL_NEW_IN, ""),
        campaign_photo=clean_reference(values.get(COL_CAMPAIGN)),
        model_photo=clean_reference(values.get(COL_MODEL)),
        video=clean_reference(values.get(COL_VIDEO)),
        values=values,
    )


def parse_inventory_csv(content: Union[bytes, str]) -> InventoryFeed:
    """
    Decode the inventory feed: comma-delimited, first line is the header,
    quoted fields with doubled quotes as escapes.

    Lines whose field count differs from the header are dropped and counted.
    """
    text = decode_text(content)
    reader = csv.reader(io.StringIO(text, newline=""))

    headers: Optional[List[str]] = None
    feed = InventoryFeed()
    for fields in reader:
        if not fields or all(not f.strip() for f in fields):
            continue
        fields = [f.strip() for f in fields]
        if headers is None:
            headers = fields
            feed.headers = headers
            continue
        if len(fields) != len(headers):
            feed.dropped += 1
            continue
        feed.rows.append(_row_from_values(dict(zip(headers, fields))))

    if feed.dropped:
        logger.warning(f"Inventory feed: dropped {feed.dropped} malformed lines")
    logger.info(f"Inventory decoded: {len(feed.rows)} rows, {len(feed.headers)} columns")
    return feed
