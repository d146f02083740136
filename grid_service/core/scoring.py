"""
Scoring Engine (v1.0.0)
Scores a candidate against the row built so far. Larger is better.

score = demographic fit + visual/style harmony + strategic media placement

All weights live in ScoringWeights so the tuning can change without touching
the scoring structure. ScoringWeights.basic() turns off the vibe, color and
outfit heuristics for the reduced engine profile.
"""
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from grid_service.core.models import Age, Gender, MediaType, ProductVariant
from grid_service.core.normalizer import (
    BOTTOM,
    CASUAL_CHIC,
    FULL_BODY,
    NEUTRAL_COLORS,
    SHOES,
    TOP,
    UNKNOWN_COLOR,
)

# Proximity order for age scoring
AGE_ORDER = (Age.BEBE.value, Age.TODDLER.value, Age.KIDS.value)


@dataclass(frozen=True)
class ScoringWeights:
    """Named, overridable scoring weights."""
    # Demographics
    age_exact: int = 5000
    age_adjacent: int = 2000
    age_distant: int = 500
    age_no_rule: int = 2000
    gender_match: int = 3000
    gender_unisex: int = 1500
    gender_mismatch: int = -10000

    # Vibe
    vibe_clash: int = -10000
    vibe_continue: int = 2000
    vibe_into_casual_row: int = -1000
    vibe_row_starter: int = 500

    # Color
    color_match: int = 3000
    color_neutral: int = 500
    color_clash: int = -5000
    color_story_start: int = 1000

    # Campaign and outfit
    campaign_match: int = 5000
    outfit_top_bottom: int = 1000
    outfit_shoes: int = 800

    # Deprioritized items
    low_priority: int = -50000

    # Strategic media
    hero_video_slot0: int = 50000
    hero_campaign_slot0: int = 45000
    hero_too_soon: int = -20000
    hero_late_slot: int = 5000
    hero_middle_slot: int = -5000
    model_filler: int = 2000
    hero_spacing_rows: int = 2

    # Complementary fallback
    complement_same_category: int = 5000
    complement_other_category: int = 2000

    # General fallback and scan position
    fallback_penalty: int = 2000
    scan_bonus_base: int = 500

    @classmethod
    def basic(cls) -> "ScoringWeights":
        """Weights with vibe, color and outfit harmony disabled."""
        return replace(
            cls(),
            vibe_clash=0, vibe_continue=0, vibe_into_casual_row=0, vibe_row_starter=0,
            color_match=0, color_neutral=0, color_clash=0, color_story_start=0,
            outfit_top_bottom=0, outfit_shoes=0,
        )


DEFAULT_WEIGHTS = ScoringWeights()


# ==================== DEMOGRAPHICS ====================

def age_score(rule_age: str, candidate_age: str, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    if not rule_age:
        return weights.age_no_rule
    if not candidate_age:
        return 0
    if rule_age == candidate_age:
        return weights.age_exact
    if rule_age not in AGE_ORDER or candidate_age not in AGE_ORDER:
        return 0
    distance = abs(AGE_ORDER.index(rule_age) - AGE_ORDER.index(candidate_age))
    return weights.age_adjacent if distance == 1 else weights.age_distant


def gender_score(rule_gender: str, candidate_gender: str, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    if not rule_gender or rule_gender == candidate_gender:
        return weights.gender_match
    if Gender.UNISEX.value in (rule_gender, candidate_gender):
        return weights.gender_unisex
    return weights.gender_mismatch


def demographic_score(
    rule_age: str,
    rule_gender: str,
    candidate: ProductVariant,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    return (
        age_score(rule_age, candidate.age, weights)
        + gender_score(rule_gender, candidate.gender, weights)
    )


# ==================== HARMONY ====================

def _vibe_score(row: Sequence[ProductVariant], candidate: ProductVariant, weights: ScoringWeights) -> int:
    if not row:
        return weights.vibe_row_starter if candidate.vibe != CASUAL_CHIC else 0

    leader = row[0].vibe
    if leader != CASUAL_CHIC:
        if candidate.vibe == leader:
            return weights.vibe_continue
        if candidate.vibe != CASUAL_CHIC:
            return weights.vibe_clash
        return 0
    return weights.vibe_into_casual_row if candidate.vibe != CASUAL_CHIC else 0


def dominant_color(row: Sequence[ProductVariant]) -> Optional[str]:
    """First non-neutral, known color family in the row."""
    for item in row:
        if item.color_family not in NEUTRAL_COLORS and item.color_family != UNKNOWN_COLOR:
            return item.color_family
    return None


def _color_score(row: Sequence[ProductVariant], candidate: ProductVariant, weights: ScoringWeights) -> int:
    color = candidate.color_family
    neutral = color in NEUTRAL_COLORS
    dominant = dominant_color(row)

    if dominant:
        if color == dominant:
            return weights.color_match
        if neutral:
            return weights.color_neutral
        return weights.color_clash
    if not neutral and color != UNKNOWN_COLOR:
        return weights.color_story_start
    return 0


def _outfit_score(row: Sequence[ProductVariant], candidate: ProductVariant, weights: ScoringWeights) -> int:
    categories = {item.garment_category for item in row}
    category = candidate.garment_category
    score = 0
    if category == TOP and BOTTOM in categories:
        score += weights.outfit_top_bottom
    if category == BOTTOM and TOP in categories:
        score += weights.outfit_top_bottom
    if category == SHOES and (TOP in categories or FULL_BODY in categories):
        score += weights.outfit_shoes
    return score


def harmony_score(
    row: Sequence[ProductVariant],
    candidate: ProductVariant,
    is_low_priority: bool = False,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    """Vibe, color, campaign and outfit cohesion with the current row."""
    score = _vibe_score(row, candidate, weights)
    score += _color_score(row, candidate, weights)

    if candidate.media_type is MediaType.CAMPAIGN and candidate.campaign_name and any(
        item.media_type is MediaType.CAMPAIGN and item.campaign_name == candidate.campaign_name
        for item in row
    ):
        score += weights.campaign_match

    score += _outfit_score(row, candidate, weights)

    if is_low_priority:
        score += weights.low_priority
    return score


# ==================== STRATEGIC MEDIA ====================

def strategic_media_score(
    candidate: ProductVariant,
    slot: int,
    last_hero_row: int,
    current_row: int,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    """
    Hero media (VIDEO/CAMPAIGN) wants slot 0, spaced `hero_spacing_rows`
    rows apart; slots 2-3 take a second hero, slot 1 is avoided.
    """
    score = 0
    if candidate.media_type.is_hero:
        if slot == 0:
            if current_row - last_hero_row >= weights.hero_spacing_rows:
                score += (
                    weights.hero_video_slot0
                    if candidate.media_type is MediaType.VIDEO
                    else weights.hero_campaign_slot0
                )
            else:
                score += weights.hero_too_soon
        elif slot >= 2:
            score += weights.hero_late_slot
        else:
            score += weights.hero_middle_slot

    if candidate.media_type is MediaType.MODEL:
        score += weights.model_filler
    return score


def complement_score(
    candidate: ProductVariant,
    intended_category: str,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    if candidate.garment_category == intended_category:
        return weights.complement_same_category
    return weights.complement_other_category


def scan_bonus(checked: int, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    """Small bonus for earlier positions in the pre-sorted pool."""
    return weights.scan_bonus_base - checked
