"""
Shared fixtures for the grid service tests.
"""
import pytest

from grid_service.core.models import MediaType, ProductVariant
from grid_service.core.normalizer import DEFAULT_NORMALIZER


def make_variant(group_key: str, **overrides) -> ProductVariant:
    """Valid PRODUCT variant with sensible defaults; tags derived unless overridden."""
    fields = {
        "group_key": group_key,
        "title": f"REMERA {group_key}",
        "description": "",
        "image_link": f"https://cdn.example.com/{group_key}_1.jpg",
        "commercial_code": group_key[:8],
        "color": "BLANCO",
        "sizes": ("4", "6"),
        "garment_type": "REMERA",
        "age": "KIDS",
        "gender": "FEMENINO",
        "stock_ecommerce": 10,
        "stock_stores": 5,
        "ranking_analytics": 100,
        "ranking_stores": 100,
        "new_in_date": None,
        "media_type": MediaType.PRODUCT,
        "has_stock": True,
        "has_price": True,
        "campaign_name": None,
        "family_name": None,
        "image_loaded": True,
    }
    fields.update(overrides)
    fields.setdefault("color_family", DEFAULT_NORMALIZER.normalize_color(fields["color"]))
    fields.setdefault("garment_category", DEFAULT_NORMALIZER.normalize_type(fields["garment_type"]))
    fields.setdefault("vibe", DEFAULT_NORMALIZER.detect_vibe(fields["title"], fields["garment_type"]))
    return ProductVariant(**fields)


@pytest.fixture
def variant():
    """Factory fixture: variant("KEY0000001", media_type=MediaType.VIDEO, ...)."""
    return make_variant


INVENTORY_HEADER = (
    "Codigo Comercial,Edad,Género,Grupo (Fórmula),SKU,Tipo Prenda,TITULO,"
    "Ranking Analytics,Rankign Locales,STOCK ECOMMERCE,STOCK LOCALES,IMAGEN CARGADA,"
    "COLOR,TALLE,PRICE_CENTS,NEW IN,FOTO CAMPAÑA,FOTO MODELO,VIDEO"
)


def inventory_line(
    key: str,
    garment_type: str = "REMERA",
    title: str = "REMERA LISA",
    age: str = "KIDS",
    gender: str = "FEMENINO",
    stock: str = "5",
    stores: str = "2",
    price: str = "1999",
    ranking: str = "10",
    size: str = "4",
    color: str = "BLANCO",
    new_in: str = "#N/A",
    campaign: str = "#N/A",
    model: str = "#N/A",
    video: str = "#N/A",
) -> str:
    return ",".join([
        key[:8], age, gender, f"%{key}%", f"{key}{size}", garment_type, f'"{title}"',
        ranking, ranking, stock, stores, "SI", color, size, price, new_in, campaign, model, video,
    ])


def catalog_xml(keys) -> bytes:
    items = "".join(
        f"<item><g:id>{k}</g:id><title>Producto {k}</title>"
        f"<description>Desc {k}</description>"
        f"<g:image_link>https://cdn.example.com/img/{k}XX_1.jpg</g:image_link></item>"
        for k in keys
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss xmlns:g="http://base.google.com/ns/1.0"><channel>'
        f"{items}</channel></rss>"
    ).encode("utf-8")


@pytest.fixture
def sample_feeds():
    """(catalog bytes, inventory bytes): 8 sellable remeras, 1 without price, 1 OJOTA, 1 without image."""
    keys = [f"AB{i:08d}" for i in range(1, 9)]
    lines = [INVENTORY_HEADER]
    for i, key in enumerate(keys):
        lines.append(inventory_line(key, ranking=str(i + 1), stock=str(20 - i)))
    lines.append(inventory_line("NP00000001", price="0"))
    lines.append(inventory_line("OJ00000001", garment_type="OJOTA", title="OJOTA PLAYA"))
    lines.append(inventory_line("NI00000001"))
    catalog = catalog_xml(keys + ["NP00000001", "OJ00000001"])
    return catalog, ("\n".join(lines) + "\n").encode("utf-8")


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Isolated job storage and sort cache under tmp_path; run logging off."""
    from grid_service.cache import CacheManager
    from grid_service.config import settings as settings_module
    from grid_service.core import orchestrator
    from grid_service.core.storage import StorageManager
    from grid_service.observability import reset_metrics

    store = StorageManager(str(tmp_path / "data"))
    store.ensure_directories()
    cache = CacheManager(cache_dir=str(tmp_path / "cache"))

    monkeypatch.setattr(orchestrator, "storage", store)
    monkeypatch.setattr(orchestrator, "cache_manager", cache)
    monkeypatch.setenv("GRID_LOGGING_ENABLED", "false")
    monkeypatch.setattr(settings_module, "_settings", settings_module.Settings.from_env())
    reset_metrics()
    return store, cache
