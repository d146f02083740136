"""
Constraint Evaluator (v1.0.0)
Hard row rules for visual media. A failed rule rejects a candidate regardless of score.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from grid_service.core.models import GRID_COLUMNS, MediaType, ProductVariant

# Rejection reasons
ADJACENT_VISUALS = "adjacent_visuals"
TOO_MANY_VISUALS = "too_many_visuals"
CAMPAIGN_MISMATCH = "campaign_mismatch"
TOO_MANY_VIDEOS = "too_many_videos"


@dataclass(frozen=True)
class ConstraintRules:
    """
    Row gating rules. `None` disables a count limit.

    The basic profile keeps only the adjacency and same-campaign rules.
    """
    forbid_adjacent_visuals: bool = True
    max_visuals_per_row: Optional[int] = 2
    require_same_campaign: bool = True
    max_videos_per_row: Optional[int] = 1

    @classmethod
    def basic(cls) -> "ConstraintRules":
        return cls(max_visuals_per_row=None, max_videos_per_row=None)


DEFAULT_RULES = ConstraintRules()


def check_visual_constraints(
    row: Sequence[ProductVariant],
    candidate: ProductVariant,
    rules: ConstraintRules = DEFAULT_RULES,
) -> Optional[str]:
    """
    Check `candidate` against the items already placed in `row` (left to right).

    Returns:
        The rejection reason, or None when the candidate may be placed.
    """
    if not candidate.media_type.is_visual:
        return None

    if rules.forbid_adjacent_visuals and row and row[-1].media_type.is_visual:
        return ADJACENT_VISUALS

    if rules.max_visuals_per_row is not None:
        visuals = sum(1 for item in row if item.media_type.is_visual)
        if visuals >= rules.max_visuals_per_row:
            return TOO_MANY_VISUALS

    if rules.require_same_campaign and candidate.media_type is MediaType.CAMPAIGN:
        for item in row:
            if item.media_type is MediaType.CAMPAIGN and item.campaign_name != candidate.campaign_name:
                return CAMPAIGN_MISMATCH

    if rules.max_videos_per_row is not None and candidate.media_type is MediaType.VIDEO:
        videos = sum(1 for item in row if item.media_type is MediaType.VIDEO)
        if videos >= rules.max_videos_per_row:
            return TOO_MANY_VIDEOS

    return None


def passes_visual_constraints(
    row: Sequence[ProductVariant],
    candidate: ProductVariant,
    rules: ConstraintRules = DEFAULT_RULES,
) -> bool:
    return check_visual_constraints(row, candidate, rules) is None


def audit_grid(
    ordering: Sequence[ProductVariant],
    rules: ConstraintRules = DEFAULT_RULES,
    columns: int = GRID_COLUMNS,
) -> List[Dict[str, Any]]:
    """
    Re-check a finished ordering row by row.

    Useful after manual swaps, which bypass the allocator. Each violation is
    reported with its row index, slot and the offending group key.
    """
    violations = []
    for start in range(0, len(ordering), columns):
        row = ordering[start:start + columns]
        for slot, item in enumerate(row):
            reason = check_visual_constraints(row[:slot], item, rules)
            if reason:
                violations.append({
                    "row": start // columns,
                    "slot": slot,
                    "group_key": item.group_key,
                    "reason": reason,
                })
    return violations
