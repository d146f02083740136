"""
Tests for feed synchronization into product variants.
"""
from datetime import date

from grid_service.core.models import CatalogEntry, InventoryRow, MediaType, UNRANKED
from grid_service.core.synchronizer import (
    identify_family_name,
    parse_new_in_date,
    synchronize,
)


def _row(key: str, **kwargs) -> InventoryRow:
    kwargs.setdefault("garment_type", "REMERA")
    kwargs.setdefault("title", "REMERA LISA")
    kwargs.setdefault("price_cents", 1000)
    return InventoryRow(group_key_raw=f"%{key}%", **kwargs)


def _entry(key: str) -> CatalogEntry:
    return CatalogEntry(
        id=key, title=key, description=f"Desc {key}",
        image_link=f"https://cdn/{key}_1.jpg", group_key=key, commercial_code=key[:8],
    )


class TestAggregation:
    """Tests for grouping rows by group key."""

    def test_stock_aggregates_across_rows(self):
        """Two rows, stock 5 and 0, give one variant with stock 5 and has_stock."""
        rows = [
            _row("ABCDEFGHIJ", stock_ecommerce=5, size="4"),
            _row("ABCDEFGHIJ", stock_ecommerce=0, size="6"),
        ]
        variants = synchronize([_entry("ABCDEFGHIJ")], rows)

        assert len(variants) == 1
        v = variants[0]
        assert v.group_key == "ABCDEFGHIJ"
        assert v.stock_ecommerce == 5
        assert v.has_stock is True
        assert v.sizes == ("4", "6")

    def test_price_validity_from_any_row(self):
        rows = [
            _row("K1", stock_ecommerce=1, price_cents=0),
            _row("K1", stock_ecommerce=0, price_cents=500),
        ]
        assert synchronize([], rows)[0].has_price is True

    def test_store_stock_counts_as_stock(self):
        variant = synchronize([], [_row("K1", stock_stores=3)])[0]
        assert variant.has_stock is True
        assert variant.stock_ecommerce == 0

    def test_representative_row_provides_scalars(self):
        rows = [
            _row("K1", title="VESTIDO FIESTA", color="ROJO", ranking_analytics=4),
            _row("K1", title="OTRO", color="AZUL", ranking_analytics=1),
        ]
        v = synchronize([], rows)[0]

        assert v.title == "VESTIDO FIESTA"
        assert v.color == "ROJO"
        assert v.color_family == "RED"
        assert v.ranking_analytics == 4

    def test_rows_without_key_are_dropped(self):
        rows = [_row(""), InventoryRow(group_key_raw="%%"), _row("K1")]
        assert [v.group_key for v in synchronize([], rows)] == ["K1"]

    def test_first_seen_order(self):
        rows = [_row("B"), _row("A"), _row("B")]
        assert [v.group_key for v in synchronize([], rows)] == ["B", "A"]

    def test_missing_fields_use_defaults(self):
        v = synchronize([], [InventoryRow(group_key_raw="K1")])[0]

        assert v.title == "Sin Título"
        assert v.garment_type == "Sin Tipo"
        assert v.age == "Sin Edad"
        assert v.gender == "Sin Género"
        assert v.color == "Sin Color"
        assert v.ranking_analytics == UNRANKED


class TestCatalogJoin:
    """Tests for joining the catalog by group key."""

    def test_matched_entry_provides_media(self):
        v = synchronize([_entry("K1")], [_row("K1", stock_ecommerce=1)])[0]

        assert v.image_link == "https://cdn/K1_1.jpg"
        assert v.description == "Desc K1"
        assert v.is_valid

    def test_join_miss_still_produces_variant(self):
        v = synchronize([_entry("OTHER")], [_row("K1", stock_ecommerce=1)])[0]

        assert v.image_link == ""
        assert v.description == ""
        assert v.is_valid is False
        assert v.invalid_reason == "missing_image"


class TestMediaClassification:
    """Media precedence: CAMPAIGN > MODEL > VIDEO > PRODUCT."""

    def test_campaign_wins(self):
        v = synchronize([], [_row("K1", campaign_photo="VERANO", model_photo="SI", video="SI")])[0]
        assert v.media_type is MediaType.CAMPAIGN
        assert v.campaign_name == "VERANO"

    def test_model_before_video(self):
        v = synchronize([], [_row("K1", model_photo="SI", video="SI")])[0]
        assert v.media_type is MediaType.MODEL
        assert v.campaign_name is None

    def test_video(self):
        assert synchronize([], [_row("K1", video="SI")])[0].media_type is MediaType.VIDEO

    def test_plain_product(self):
        assert synchronize([], [_row("K1")])[0].media_type is MediaType.PRODUCT


class TestHelpers:
    """Tests for date parsing and family names."""

    def test_new_in_date(self):
        assert parse_new_in_date("05/11/2024") == date(2024, 11, 5)
        assert parse_new_in_date("#N/A") is None
        assert parse_new_in_date("") is None
        assert parse_new_in_date("31/02/2024") is None

    def test_family_name_is_last_significant_word(self):
        assert identify_family_name("REMERA DE ALGODON NUBE", "REMERA") == "NUBE"

    def test_family_name_skips_numbers_and_short_words(self):
        assert identify_family_name("Buzo Osito 2 XL", "BUZO") == "OSITO"

    def test_family_name_none_when_nothing_qualifies(self):
        assert identify_family_name("REMERA DE LA", "REMERA") is None
