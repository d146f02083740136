"""
Tests for the sorting engine entry point and tail classification.
"""
from grid_service.config.settings import Settings
from grid_service.core.grid_sorter import PROFILE_BASIC, EngineOptions, sort_products
from grid_service.core.models import MediaType, RowRule
from grid_service.core.tail import is_deprioritized, normalize_terms, partition_variants


def _keys(variants):
    return [v.group_key for v in variants]


class TestTailPartition:
    """Tests for the excluded > invalid > basic > eligible precedence."""

    def test_precedence(self, variant):
        variants = [
            variant("EX", garment_type="OJOTA", has_stock=False),
            variant("IN", has_price=False, title="REMERA LIQUIDACION"),
            variant("BA", title="REMERA LIQUIDACION"),
            variant("OK"),
        ]
        partition = partition_variants(variants, ["ojota"], ["liquidacion"])

        assert _keys(partition.excluded) == ["EX"]
        assert _keys(partition.invalid) == ["IN"]
        assert _keys(partition.basic) == ["BA"]
        assert _keys(partition.eligible) == ["OK"]
        assert partition.total == 4

    def test_deprioritized_by_code(self, variant):
        v = variant("AB12345678", title="REMERA LISA")
        assert is_deprioritized(v, normalize_terms(["ab12345678"]))
        assert is_deprioritized(v, normalize_terms(["AB123456"]))
        assert not is_deprioritized(v, normalize_terms(["AB1234"]))
        assert not is_deprioritized(v, normalize_terms(["", "  "]))

    def test_kept_in_pool_when_tail_disabled(self, variant):
        partition = partition_variants([variant("BA", title="REMERA OUTLET")], (), ["OUTLET"], tail_deprioritized=False)

        assert _keys(partition.eligible) == ["BA"]
        assert partition.low_priority == {"BA"}
        assert partition.basic == []


class TestSortProducts:
    """Tests for the full ordering."""

    def test_tail_sections_in_order(self, variant):
        """Excluded OJOTA goes to the very end; invalid and basic tails are sorted by title."""
        variants = [
            variant("OJ", garment_type="OJOTA", title="OJOTA PLAYA"),
            variant("I2", title="ZETA", has_stock=False),
            variant("I1", title="ALFA", image_link=""),
            variant("B1", title="REMERA SALDO"),
            variant("P1"),
            variant("P2"),
        ]
        result = sort_products(variants, excluded_types=["OJOTA"], deprioritized=["SALDO"])

        assert _keys(result.ordering[:2]) == ["P1", "P2"]
        assert _keys(result.ordering[2:]) == ["B1", "I1", "I2", "OJ"]
        assert result.sections == {"allocated": 2, "basic": 1, "invalid": 2, "excluded": 1}

    def test_excluded_keep_input_order(self, variant):
        variants = [
            variant("Z1", garment_type="OJOTA", title="ZZZ"),
            variant("A1", garment_type="OJOTA", title="AAA"),
        ]
        result = sort_products(variants, excluded_types=["OJOTA"])
        assert _keys(result.ordering) == ["Z1", "A1"]

    def test_coverage_and_stable_keys(self, variant):
        variants = [variant(f"P{i:02d}", age="KIDS" if i % 2 else "TODDLER") for i in range(15)]
        variants += [
            variant("V1", media_type=MediaType.VIDEO),
            variant("C1", media_type=MediaType.CAMPAIGN, campaign_name="VERANO"),
            variant("X1", has_price=False),
        ]
        result = sort_products(variants, [RowRule(age="KIDS", product_types=("REMERA",))])

        assert sorted(_keys(result.ordering)) == sorted(_keys(variants))
        assert len(result.ordering) == len(variants)
        assert result.violations == []

    def test_low_priority_sinks_inside_allocation(self, variant):
        variants = [variant("LP", title="REMERA OUTLET", stock_ecommerce=99)]
        variants += [variant(f"P{i}") for i in range(3)]
        options = EngineOptions(tail_deprioritized=False)

        result = sort_products(variants, deprioritized=["OUTLET"], options=options)

        assert result.ordering[-1].group_key == "LP"
        assert result.sections["basic"] == 0
        assert result.sections["allocated"] == 4

    def test_basic_profile(self, variant):
        variants = [variant(f"P{i}") for i in range(5)]
        options = EngineOptions.for_profile(PROFILE_BASIC)

        result = sort_products(variants, options=options)

        assert options.weights.vibe_continue == 0
        assert options.constraints.max_videos_per_row is None
        assert sorted(_keys(result.ordering)) == sorted(_keys(variants))

    def test_empty_input(self):
        result = sort_products([])
        assert result.ordering == []
        assert result.sections == {"allocated": 0, "basic": 0, "invalid": 0, "excluded": 0}


class TestEngineOptions:
    def test_from_settings(self):
        settings = Settings(engine_profile="basic", phase1_window=50, hero_spacing_rows=3, tail_deprioritized=False)
        options = EngineOptions.from_settings(settings)

        assert options.profile == PROFILE_BASIC
        assert options.allocator.phase1_window == 50
        assert options.weights.hero_spacing_rows == 3
        assert options.weights.color_match == 0
        assert options.tail_deprioritized is False

    def test_fingerprint_covers_result_options(self):
        base = EngineOptions.from_settings(Settings())

        assert base.fingerprint() == EngineOptions.from_settings(Settings()).fingerprint()
        for changed in (
            Settings(tail_deprioritized=False),
            Settings(fallback_window=20),
            Settings(extend_fallback_window=True),
            Settings(max_stuck_rows=5),
            Settings(hero_spacing_rows=4),
        ):
            assert EngineOptions.from_settings(changed).fingerprint() != base.fingerprint()
        assert base.fingerprint()["normalizer"] == base.normalizer.to_dict()
