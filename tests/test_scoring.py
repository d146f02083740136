"""
Tests for the scoring functions.
"""
from grid_service.core.models import MediaType
from grid_service.core.scoring import (
    DEFAULT_WEIGHTS,
    ScoringWeights,
    age_score,
    complement_score,
    demographic_score,
    dominant_color,
    gender_score,
    harmony_score,
    scan_bonus,
    strategic_media_score,
)


class TestDemographics:
    def test_age_proximity(self):
        assert age_score("KIDS", "KIDS") == 5000
        assert age_score("KIDS", "TODDLER") == 2000
        assert age_score("KIDS", "BEBE") == 500
        assert age_score("", "BEBE") == 2000

    def test_unknown_age_scores_zero(self):
        assert age_score("KIDS", "ADULTO") == 0
        assert age_score("KIDS", "") == 0

    def test_gender(self):
        assert gender_score("FEMENINO", "FEMENINO") == 3000
        assert gender_score("", "MASCULINO") == 3000
        assert gender_score("FEMENINO", "UNISEX") == 1500
        assert gender_score("UNISEX", "MASCULINO") == 1500
        assert gender_score("FEMENINO", "MASCULINO") == -10000

    def test_demographic_score_adds_both(self, variant):
        candidate = variant("K1", age="TODDLER", gender="UNISEX")
        assert demographic_score("KIDS", "FEMENINO", candidate) == 2000 + 1500


class TestHarmony:
    """Tests for vibe, color, campaign and outfit cohesion."""

    def test_empty_row_strong_vibe_starts_row(self, variant):
        beach = variant("B1", title="MALLA ENTERA", garment_type="MALLA", color="BLANCO")
        chic = variant("C1", color="BLANCO")

        assert harmony_score([], beach) == 500
        assert harmony_score([], chic) == 0

    def test_vibe_continuation_and_clash(self, variant):
        row = [variant("B1", title="MALLA ENTERA", garment_type="MALLA", color="BLANCO")]
        same = variant("B2", title="BIKINI", garment_type="MALLA", color="BLANCO")
        clash = variant("S1", title="JOGGING", garment_type="PANTALON", color="BLANCO")
        chic = variant("C1", color="BLANCO")

        assert harmony_score(row, same) == 2000
        assert harmony_score(row, clash) == -10000
        assert harmony_score(row, chic) == 0

    def test_strong_vibe_into_casual_row(self, variant):
        row = [variant("C1", color="BLANCO")]
        sport = variant("S1", title="JOGGING", garment_type="BUZO", color="BLANCO")
        assert harmony_score(row, sport) == -1000

    def test_color_story(self, variant):
        row = [variant("W1", color="BLANCO"), variant("R1", color="ROJO")]

        assert dominant_color(row) == "RED"
        assert harmony_score(row, variant("R2", color="BORDO")) == 3000
        assert harmony_score(row, variant("N1", color="NEGRO")) == 500
        assert harmony_score(row, variant("B1", color="AZUL")) == -5000

    def test_color_story_start(self, variant):
        row = [variant("W1", color="BLANCO")]
        assert harmony_score(row, variant("R1", color="ROJO")) == 1000
        assert harmony_score(row, variant("N1", color="NEGRO")) == 0

    def test_campaign_match_bonus(self, variant):
        row = [variant("C1", media_type=MediaType.CAMPAIGN, campaign_name="VERANO", color="BLANCO")]
        candidate = variant("C2", media_type=MediaType.CAMPAIGN, campaign_name="VERANO", color="BLANCO")
        assert harmony_score(row, candidate) == 5000

    def test_unnamed_campaign_gets_no_match_bonus(self, variant):
        row = [variant("P1", color="BLANCO")]
        candidate = variant("C1", media_type=MediaType.CAMPAIGN, campaign_name=None, color="BLANCO")
        assert harmony_score(row, candidate) == 0

        row.append(variant("C0", media_type=MediaType.CAMPAIGN, campaign_name=None, color="BLANCO"))
        assert harmony_score(row, candidate) == 0

    def test_outfit_completion(self, variant):
        row = [variant("T1", color="BLANCO")]
        bottom = variant("P1", title="SHORT LISO", garment_type="SHORT", color="NEGRO")
        assert harmony_score(row, bottom) == 1000

    def test_low_priority_penalty(self, variant):
        assert harmony_score([], variant("C1"), is_low_priority=True) == -50000

    def test_basic_weights_disable_heuristics(self, variant):
        weights = ScoringWeights.basic()
        row = [variant("R1", color="ROJO")]
        candidate = variant("B1", title="MALLA", garment_type="MALLA", color="AZUL")

        assert harmony_score(row, candidate, weights=weights) == 0
        assert harmony_score([], candidate, is_low_priority=True, weights=weights) == -50000


class TestStrategicMedia:
    """Tests for hero media placement scoring."""

    def test_hero_slot0_when_spaced(self, variant):
        video = variant("V1", media_type=MediaType.VIDEO)
        campaign = variant("C1", media_type=MediaType.CAMPAIGN, campaign_name="X")

        assert strategic_media_score(video, 0, last_hero_row=-2, current_row=0) == 50000
        assert strategic_media_score(campaign, 0, last_hero_row=1, current_row=3) == 45000

    def test_hero_too_soon(self, variant):
        video = variant("V1", media_type=MediaType.VIDEO)
        assert strategic_media_score(video, 0, last_hero_row=2, current_row=3) == -20000

    def test_hero_slot_preferences(self, variant):
        video = variant("V1", media_type=MediaType.VIDEO)
        assert strategic_media_score(video, 1, -2, 0) == -5000
        assert strategic_media_score(video, 2, -2, 0) == 5000
        assert strategic_media_score(video, 3, -2, 0) == 5000

    def test_model_and_product(self, variant):
        assert strategic_media_score(variant("M1", media_type=MediaType.MODEL), 1, -2, 0) == 2000
        assert strategic_media_score(variant("P1"), 0, -2, 0) == 0

    def test_spacing_is_configurable(self, variant):
        weights = ScoringWeights(hero_spacing_rows=1)
        video = variant("V1", media_type=MediaType.VIDEO)
        assert strategic_media_score(video, 0, 2, 3, weights) == 50000


class TestFallbackScores:
    def test_complement(self, variant):
        assert complement_score(variant("T1"), "TOP") == 5000
        assert complement_score(variant("T1"), "BOTTOM") == 2000

    def test_scan_bonus_decreases(self):
        assert scan_bonus(1) == DEFAULT_WEIGHTS.scan_bonus_base - 1
        assert scan_bonus(1) > scan_bonus(10)
