"""
Grid Models (v1.0.0)
Typed records shared by the feed decoders, the synchronizer and the sorter.
"""
from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple, Any

# Sentinel for "unranked": sorts after every real ranking.
UNRANKED = 9999

# Rows per grid line on the listing page.
GRID_COLUMNS = 4


# ==================== ENUMS ====================

class MediaType(Enum):
    """Media attached to a variant. Precedence: CAMPAIGN > MODEL > VIDEO > PRODUCT."""
    CAMPAIGN = "CAMPAIGN"
    MODEL = "MODEL"
    VIDEO = "VIDEO"
    PRODUCT = "PRODUCT"

    @property
    def is_visual(self) -> bool:
        """Anything beyond a plain product photo (gated by the row constraints)."""
        return self is not MediaType.PRODUCT

    @property
    def is_hero(self) -> bool:
        """Media that wants the first slot of a row and row spacing."""
        return self in (MediaType.VIDEO, MediaType.CAMPAIGN)


class Age(Enum):
    """Age groups, ordered youngest first."""
    BEBE = "BEBE"
    TODDLER = "TODDLER"
    KIDS = "KIDS"


class Gender(Enum):
    FEMENINO = "FEMENINO"
    MASCULINO = "MASCULINO"
    UNISEX = "UNISEX"


# ==================== FEED RECORDS ====================

@dataclass
class CatalogEntry:
    """One <item> of the catalog/media feed."""
    id: str
    title: str
    description: str
    image_link: str
    group_key: str
    commercial_code: str


@dataclass
class InventoryRow:
    """
    One size/variant line of the inventory/metrics feed.

    `values` keeps every raw column of the line so the exporter can write the
    row back untouched.
    """
    group_key_raw: str
    commercial_code: str = ""
    sku: str = ""
    garment_type: str = ""
    age: str = ""
    gender: str = ""
    title: str = ""
    color: str = ""
    size: str = ""
    stock_ecommerce: int = 0
    stock_stores: int = 0
    ranking_analytics: int = UNRANKED
    ranking_stores: int = UNRANKED
    price_cents: int = 0
    image_loaded: bool = False
    new_in: str = ""
    campaign_photo: str = ""
    model_photo: str = ""
    video: str = ""
    values: Dict[str, str] = field(default_factory=dict)

    @property
    def group_key(self) -> str:
        """Group key with the `%` wrapper characters stripped."""
        return self.group_key_raw.replace("%", "")


# ==================== PRODUCT VARIANT ====================

@dataclass(frozen=True)
class ProductVariant:
    """
    Unified merchandising record, one per group key.

    Frozen: a synchronization run creates variants once. The only sanctioned
    change is a media replacement, done with `dataclasses.replace`, which keeps
    `group_key` untouched.
    """
    group_key: str
    title: str
    description: str
    image_link: str
    commercial_code: str
    color: str
    sizes: Tuple[str, ...]
    garment_type: str
    age: str
    gender: str
    stock_ecommerce: int
    stock_stores: int
    ranking_analytics: int
    ranking_stores: int
    new_in_date: Optional[date]
    media_type: MediaType
    has_stock: bool
    has_price: bool
    color_family: str
    garment_category: str
    vibe: str
    campaign_name: Optional[str] = None
    family_name: Optional[str] = None
    image_loaded: bool = False

    @property
    def id(self) -> str:
        return self.group_key

    @property
    def has_image(self) -> bool:
        return bool(self.image_link)

    @property
    def is_valid(self) -> bool:
        """Publishable: stock, price and attached media."""
        return self.has_stock and self.has_price and self.has_image

    @property
    def invalid_reason(self) -> Optional[str]:
        if not self.has_image:
            return "missing_image"
        if not self.has_stock:
            return "missing_stock"
        if not self.has_price:
            return "missing_price"
        return None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view."""
        data = asdict(self)
        data["sizes"] = list(self.sizes)
        data["media_type"] = self.media_type.value
        data["new_in_date"] = self.new_in_date.isoformat() if self.new_in_date else None
        data["is_valid"] = self.is_valid
        data["invalid_reason"] = self.invalid_reason
        return data


# ==================== SORTING RULES ====================

@dataclass(frozen=True)
class RowRule:
    """
    Targeting for one generated row.

    Empty `age`/`gender` mean "no preference". `product_types` holds up to four
    requested garment types, one per slot; blanks are ignored.
    """
    age: str = ""
    gender: str = ""
    product_types: Tuple[str, ...] = ()
    id: str = ""

    @property
    def requested_types(self) -> List[str]:
        return [pt.strip() for pt in self.product_types if pt and pt.strip()]

    def requested_type(self, slot: int) -> Optional[str]:
        """Garment type requested for `slot`, or None."""
        types = self.requested_types
        return types[slot] if slot < len(types) else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RowRule":
        types = data.get("product_types")
        if types is None:
            types = data.get("productTypes") or []
        return cls(
            age=(data.get("age") or "").strip().upper(),
            gender=(data.get("gender") or "").strip().upper(),
            product_types=tuple(str(t) for t in types),
            id=str(data.get("id") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "age": self.age,
            "gender": self.gender,
            "product_types": list(self.product_types),
        }


# An empty rule: used when a criterion defines no rows.
EMPTY_RULE = RowRule(id="default")


@dataclass
class Criterion:
    """A named, ordered list of row rules consumed round-robin."""
    name: str
    rows: List[RowRule] = field(default_factory=list)

    @property
    def effective_rows(self) -> List[RowRule]:
        return self.rows if self.rows else [EMPTY_RULE]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "rows": [r.to_dict() for r in self.rows]}
