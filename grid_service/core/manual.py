"""
Manual Adjustments (v1.0.0)
Post-sort edits made by merchandisers: swaps, replacement suggestions and
media replacement.
"""
import dataclasses
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse

from grid_service.core.models import MediaType, ProductVariant

VIDEO_EXTENSIONS = {".mp4", ".mov", ".webm"}
TOP_STOCK_LIMIT = 20


def swap_positions(order: Sequence[str], from_key: str, to_key: str) -> List[str]:
    """
    Swap two group keys in an ordering.

    Raises:
        KeyError: If either key is not in the ordering
    """
    order = list(order)
    try:
        i = order.index(from_key)
        j = order.index(to_key)
    except ValueError as e:
        raise KeyError(str(e))
    order[i], order[j] = order[j], order[i]
    return order


def media_type_for_filename(name: str) -> MediaType:
    """VIDEO for video file extensions, PRODUCT for anything else."""
    path = urlparse(name).path or name
    suffix = PurePosixPath(path).suffix.lower()
    return MediaType.VIDEO if suffix in VIDEO_EXTENSIONS else MediaType.PRODUCT


def replace_media(
    variant: ProductVariant,
    image_link: str,
    media_type: Optional[MediaType] = None,
    campaign_name: Optional[str] = None,
) -> ProductVariant:
    """
    New variant with its media replaced; identity and group key are kept.
    The media type is inferred from the link when not given.
    """
    media_type = media_type or media_type_for_filename(image_link)
    return dataclasses.replace(
        variant,
        image_link=image_link,
        media_type=media_type,
        campaign_name=campaign_name if media_type is MediaType.CAMPAIGN else None,
    )


def apply_media_overrides(
    variants: Sequence[ProductVariant],
    overrides: Dict[str, Dict[str, Optional[str]]],
) -> List[ProductVariant]:
    """Re-apply stored media overrides (`group_key -> {image_link, media_type, campaign_name}`)."""
    if not overrides:
        return list(variants)
    result = []
    for variant in variants:
        override = overrides.get(variant.group_key)
        if override:
            media_type = override.get("media_type")
            variant = replace_media(
                variant,
                override.get("image_link") or "",
                MediaType(media_type) if media_type else None,
                override.get("campaign_name"),
            )
        result.append(variant)
    return result


def _matches(variant: ProductVariant, query: str) -> bool:
    return query in variant.title.lower() or query in variant.group_key.lower()


def replacement_candidates(
    target: ProductVariant,
    variants: Sequence[ProductVariant],
    query: Optional[str] = None,
) -> Dict[str, List[ProductVariant]]:
    """
    Valid alternatives for `target`, grouped as `by_type`, `videos` and
    `top_stock`. Empty groups are omitted.
    """
    pool = [v for v in variants if v.group_key != target.group_key and v.is_valid]
    if query and query.strip():
        q = query.strip().lower()
        pool = [v for v in pool if _matches(v, q)]

    groups = {
        "by_type": [v for v in pool if v.garment_type.lower() == target.garment_type.lower()],
        "videos": [v for v in pool if v.media_type is MediaType.VIDEO],
        "top_stock": sorted(pool, key=lambda v: -v.stock_ecommerce)[:TOP_STOCK_LIMIT],
    }
    return {name: items for name, items in groups.items() if items}
