"""
Tests for the catalog and inventory feed decoders.
"""
from grid_service.core.feeds import (
    derive_codes_from_url,
    decode_text,
    parse_catalog_xml,
    parse_inventory_csv,
    parse_quantity,
    parse_ranking,
)
from grid_service.core.models import UNRANKED

from conftest import INVENTORY_HEADER, catalog_xml, inventory_line


class TestCatalogFeed:
    """Tests for catalog XML decoding."""

    def test_codes_derived_from_url_prefix(self):
        assert derive_codes_from_url("https://cdn.x.com/a/b/1234567890XL_front_2.jpg") == ("1234567890", "12345678")

    def test_short_prefix_is_kept_whole(self):
        assert derive_codes_from_url("https://cdn.x.com/ABC_1.jpg") == ("ABC", "ABC")

    def test_empty_url_gives_empty_codes(self):
        assert derive_codes_from_url("") == ("", "")

    def test_parses_namespaced_items(self):
        entries = parse_catalog_xml(catalog_xml(["AB00000001", "AB00000002"]))

        assert [e.group_key for e in entries] == ["AB00000001", "AB00000002"]
        assert entries[0].id == "AB00000001"
        assert entries[0].description == "Desc AB00000001"
        assert entries[0].commercial_code == "AB000000"

    def test_items_without_image_are_discarded(self):
        xml = b"<rss><channel><item><id>1</id><title>Sin imagen</title></item></channel></rss>"
        assert parse_catalog_xml(xml) == []

    def test_invalid_markup_yields_empty_catalog(self):
        assert parse_catalog_xml(b"<rss><channel><item>") == []


class TestValueParsing:
    """Tests for sentinel defaults."""

    def test_ranking_sentinels(self):
        assert parse_ranking("12") == 12
        assert parse_ranking("abc") == UNRANKED
        assert parse_ranking("") == UNRANKED
        assert parse_ranking("0") == UNRANKED

    def test_quantity_sentinels(self):
        assert parse_quantity("7") == 7
        assert parse_quantity("7.9") == 7
        assert parse_quantity("n/a") == 0
        assert parse_quantity("-3") == 0

    def test_decode_latin1_fallback(self):
        assert decode_text("Género".encode("latin-1")) == "Género"

    def test_decode_strips_bom(self):
        assert decode_text("\ufeffa,b".encode("utf-8")) == "a,b"


class TestInventoryFeed:
    """Tests for inventory CSV decoding."""

    def test_parses_rows_and_strips_key_wrapper(self):
        text = "\n".join([INVENTORY_HEADER, inventory_line("AB00000001")])
        feed = parse_inventory_csv(text.encode("utf-8"))

        assert len(feed.rows) == 1
        row = feed.rows[0]
        assert row.group_key_raw == "%AB00000001%"
        assert row.group_key == "AB00000001"
        assert row.stock_ecommerce == 5
        assert row.price_cents == 1999
        assert row.image_loaded is True
        assert row.campaign_photo == ""

    def test_quoted_fields_with_commas_and_escaped_quotes(self):
        line = inventory_line("AB00000001", title='REMERA ""NUBE"", LISA')
        feed = parse_inventory_csv("\n".join([INVENTORY_HEADER, line]))

        assert feed.rows[0].title == 'REMERA "NUBE", LISA'

    def test_mismatched_lines_are_dropped(self):
        text = "\n".join([INVENTORY_HEADER, inventory_line("AB00000001"), "a,b,c", inventory_line("AB00000002")])
        feed = parse_inventory_csv(text)

        assert [r.group_key for r in feed.rows] == ["AB00000001", "AB00000002"]
        assert feed.dropped == 1

    def test_non_numeric_values_use_sentinels(self):
        line = inventory_line("AB00000001", ranking="x", stock="x", price="x")
        row = parse_inventory_csv("\n".join([INVENTORY_HEADER, line])).rows[0]

        assert row.ranking_analytics == UNRANKED
        assert row.ranking_stores == UNRANKED
        assert row.stock_ecommerce == 0
        assert row.price_cents == 0

    def test_both_store_ranking_spellings(self):
        header = INVENTORY_HEADER.replace("Rankign Locales", "Ranking Locales")
        row = parse_inventory_csv("\n".join([header, inventory_line("AB00000001", ranking="3")])).rows[0]
        assert row.ranking_stores == 3

    def test_hero_references(self):
        line = inventory_line("AB00000001", campaign="VERANO", video="SI")
        row = parse_inventory_csv("\n".join([INVENTORY_HEADER, line])).rows[0]

        assert row.campaign_photo == "VERANO"
        assert row.model_photo == ""
        assert row.video == "SI"

    def test_headers_preserved_for_export(self):
        feed = parse_inventory_csv(INVENTORY_HEADER + "\n")
        assert feed.headers == INVENTORY_HEADER.split(",")
        assert feed.rows == []
