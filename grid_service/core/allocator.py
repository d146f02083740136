"""
Row/Slot Allocator (v1.0.0)
Builds the grid row by row, slot by slot, from a pool of eligible variants.

Per slot, three phases are tried in order:
  1. exact garment type match for the slot's requested type
  2. complementary fallback on the normalized category (strict demographics)
  3. general fallback ignoring type, with a fixed penalty
All phases go through the constraint evaluator first; the best score wins.

Rows are aligned to the grid: a row that could not be completed is continued
by the next iteration (with the next rule) instead of starting a new line.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from grid_service.core.constraints import DEFAULT_RULES, ConstraintRules, passes_visual_constraints
from grid_service.core.models import EMPTY_RULE, GRID_COLUMNS, ProductVariant, RowRule
from grid_service.core.normalizer import DEFAULT_NORMALIZER, Normalizer
from grid_service.core.scoring import (
    DEFAULT_WEIGHTS,
    ScoringWeights,
    complement_score,
    demographic_score,
    harmony_score,
    scan_bonus,
    strategic_media_score,
)

logger = logging.getLogger(__name__)

PHASE_EXACT = "exact"
PHASE_COMPLEMENT = "complement"
PHASE_FALLBACK = "fallback"


@dataclass(frozen=True)
class AllocatorConfig:
    """Scan windows and termination bounds."""
    phase1_window: int = 300
    phase2_window: int = 300
    fallback_window: int = 100
    safety_factor: int = 2
    max_stuck_rows: int = 3
    columns: int = GRID_COLUMNS
    # Phase 3 stops at fallback_window unless this is set
    extend_fallback_window: bool = False


DEFAULT_CONFIG = AllocatorConfig()


@dataclass
class AllocationState:
    """Mutable bookkeeping owned by a single allocation run."""
    placed: List[ProductVariant] = field(default_factory=list)
    used: Set[str] = field(default_factory=set)
    row_index: int = 0
    last_hero_row: int = -2
    stuck_rows: int = 0

    def current_row(self, columns: int) -> List[ProductVariant]:
        row_start = (len(self.placed) // columns) * columns
        return self.placed[row_start:]

    def grid_row(self, columns: int) -> int:
        return len(self.placed) // columns

    def place(self, variant: ProductVariant):
        self.placed.append(variant)
        self.used.add(variant.group_key)


@dataclass
class AllocationResult:
    ordering: List[ProductVariant]
    rows_built: int
    flushed: int
    phase_counts: Dict[str, int]


def _date_key(variant: ProductVariant) -> Tuple[int, int]:
    if variant.new_in_date is None:
        return (1, 0)
    return (0, -variant.new_in_date.toordinal())


def presort_pool(pool: Sequence[ProductVariant], low_priority: Set[str]) -> List[ProductVariant]:
    """
    Order the pool once: deprioritized last, hero media slightly promoted, then
    e-commerce stock desc, analytics ranking asc, store ranking asc, newest
    arrival first (undated after dated) and store stock desc. Stable.
    """
    return sorted(
        pool,
        key=lambda v: (
            v.group_key in low_priority,
            not v.media_type.is_hero,
            -v.stock_ecommerce,
            v.ranking_analytics,
            v.ranking_stores,
            _date_key(v),
            -v.stock_stores,
        ),
    )


class _SlotSearch:
    """Best-candidate tracker for one phase scan."""

    def __init__(self):
        self.best: Optional[ProductVariant] = None
        self.best_score = float("-inf")

    def offer(self, candidate: ProductVariant, score: float):
        if score > self.best_score:
            self.best = candidate
            self.best_score = score


def _scan(
    pool: Sequence[ProductVariant],
    state: AllocationState,
    window: int,
    counts: Callable[[ProductVariant], bool],
    score: Callable[[ProductVariant, int], Optional[float]],
    extend: bool = True,
) -> Optional[ProductVariant]:
    """
    Scan unused pool items in order. Items passing `counts` consume the window.
    With `extend`, the window is extended until at least one candidate is accepted.
    `score` returns None to reject a counted candidate.
    """
    search = _SlotSearch()
    checked = 0
    for candidate in pool:
        if candidate.group_key in state.used:
            continue
        if checked >= window and (search.best is not None or not extend):
            break
        if not counts(candidate):
            continue
        checked += 1
        value = score(candidate, checked)
        if value is not None:
            search.offer(candidate, value)
    return search.best


def allocate(
    pool: Sequence[ProductVariant],
    rules: Sequence[RowRule],
    low_priority: Optional[Set[str]] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    constraints: ConstraintRules = DEFAULT_RULES,
    config: AllocatorConfig = DEFAULT_CONFIG,
    normalizer: Normalizer = DEFAULT_NORMALIZER,
) -> AllocationResult:
    """
    Allocate every eligible variant into grid rows.

    Args:
        pool: Eligible variants (validity already decided)
        rules: Row rules consumed round-robin; empty means one open rule
        low_priority: Group keys of deprioritized variants kept in the pool
        weights: Scoring weights
        constraints: Visual media row rules
        config: Scan windows and termination bounds

    Returns:
        AllocationResult with the full ordering of `pool` (allocated first,
        then any leftovers in pre-sort order).
    """
    low_priority = low_priority or set()
    rules = list(rules) or [EMPTY_RULE]
    columns = config.columns
    ordered_pool = presort_pool(pool, low_priority)

    state = AllocationState(last_hero_row=-weights.hero_spacing_rows)
    phase_counts = {PHASE_EXACT: 0, PHASE_COMPLEMENT: 0, PHASE_FALLBACK: 0}
    safety_bound = len(ordered_pool) * config.safety_factor

    while len(state.placed) < len(ordered_pool):
        if state.row_index > safety_bound:
            logger.warning(f"Allocator safety bound reached after {state.row_index} rows")
            break
        if state.stuck_rows >= config.max_stuck_rows:
            logger.warning(f"Allocator stuck for {state.stuck_rows} rows, flushing remaining items")
            break

        rule = rules[state.row_index % len(rules)]
        placed_before = len(state.placed)
        row_has_hero = False
        grid_row = state.grid_row(columns)

        for slot in range(len(state.current_row(columns)), columns):
            if len(state.placed) >= len(ordered_pool):
                break

            row = state.current_row(columns)
            chosen, phase = _fill_slot(
                ordered_pool, state, rule, row, slot, grid_row,
                low_priority, weights, constraints, config, normalizer,
            )
            if chosen is None:
                break

            state.place(chosen)
            phase_counts[phase] += 1
            if chosen.media_type.is_hero:
                row_has_hero = True

        if row_has_hero:
            state.last_hero_row = grid_row
        state.stuck_rows = state.stuck_rows + 1 if len(state.placed) == placed_before else 0
        state.row_index += 1

    leftovers = [v for v in ordered_pool if v.group_key not in state.used]
    if leftovers:
        logger.info(f"Allocator flushed {len(leftovers)} items in pre-sort order")

    return AllocationResult(
        ordering=state.placed + leftovers,
        rows_built=state.row_index,
        flushed=len(leftovers),
        phase_counts=phase_counts,
    )


def _fill_slot(
    pool: Sequence[ProductVariant],
    state: AllocationState,
    rule: RowRule,
    row: List[ProductVariant],
    slot: int,
    grid_row: int,
    low_priority: Set[str],
    weights: ScoringWeights,
    constraints: ConstraintRules,
    config: AllocatorConfig,
    normalizer: Normalizer,
) -> Tuple[Optional[ProductVariant], str]:
    target_type = rule.requested_type(slot)

    def is_low(candidate: ProductVariant) -> bool:
        return candidate.group_key in low_priority

    # Phase 1: exact garment type
    if target_type:
        wanted = target_type.lower()

        def exact_score(candidate, checked):
            if not passes_visual_constraints(row, candidate, constraints):
                return None
            return (
                demographic_score(rule.age, rule.gender, candidate, weights)
                + harmony_score(row, candidate, is_low(candidate), weights)
                + strategic_media_score(candidate, slot, state.last_hero_row, grid_row, weights)
                + scan_bonus(checked, weights)
            )

        best = _scan(
            pool, state, config.phase1_window,
            lambda c: c.garment_type.lower() == wanted,
            exact_score,
        )
        if best is not None:
            return best, PHASE_EXACT

        # Phase 2: complementary category
        intended = normalizer.normalize_type(target_type)
        left_category = row[-1].garment_category if row else None

        def demographics_match(candidate):
            if rule.age and candidate.age != rule.age:
                return False
            if rule.gender and candidate.gender != rule.gender:
                return False
            return True

        def complement(candidate, checked):
            if not passes_visual_constraints(row, candidate, constraints):
                return None
            if left_category and candidate.garment_category == left_category:
                return None
            return (
                complement_score(candidate, intended, weights)
                + harmony_score(row, candidate, is_low(candidate), weights)
                + scan_bonus(checked, weights)
            )

        best = _scan(pool, state, config.phase2_window, demographics_match, complement)
        if best is not None:
            return best, PHASE_COMPLEMENT

    # Phase 3: general fallback
    def fallback(candidate, checked):
        if not passes_visual_constraints(row, candidate, constraints):
            return None
        return (
            demographic_score(rule.age, rule.gender, candidate, weights)
            + harmony_score(row, candidate, is_low(candidate), weights)
            - weights.fallback_penalty
        )

    best = _scan(
        pool, state, config.fallback_window, lambda c: True, fallback,
        extend=config.extend_fallback_window,
    )
    return best, PHASE_FALLBACK
