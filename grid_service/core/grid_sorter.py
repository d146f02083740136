"""
Grid Sorter (v1.0.0)
Entry point of the sorting engine: tail partition -> allocation -> final order.

Pure computation: no I/O, no shared state. The same inputs and options always
produce the same ordering.
"""
import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence

from grid_service.core.allocator import DEFAULT_CONFIG, AllocatorConfig, allocate
from grid_service.core.constraints import DEFAULT_RULES, ConstraintRules, audit_grid
from grid_service.core.models import ProductVariant, RowRule
from grid_service.core.normalizer import DEFAULT_NORMALIZER, Normalizer
from grid_service.core.scoring import DEFAULT_WEIGHTS, ScoringWeights
from grid_service.core.tail import assemble_order, partition_variants

logger = logging.getLogger(__name__)

PROFILE_FULL = "full"
PROFILE_BASIC = "basic"
PROFILES = (PROFILE_FULL, PROFILE_BASIC)


@dataclass(frozen=True)
class EngineOptions:
    """Everything the engine needs besides the variants and the rules."""
    profile: str = PROFILE_FULL
    weights: ScoringWeights = DEFAULT_WEIGHTS
    constraints: ConstraintRules = DEFAULT_RULES
    allocator: AllocatorConfig = DEFAULT_CONFIG
    tail_deprioritized: bool = True
    normalizer: Normalizer = field(default=DEFAULT_NORMALIZER, compare=False)

    @classmethod
    def for_profile(cls, profile: str, **overrides) -> "EngineOptions":
        if profile == PROFILE_BASIC:
            return cls(
                profile=PROFILE_BASIC,
                weights=ScoringWeights.basic(),
                constraints=ConstraintRules.basic(),
                **overrides,
            )
        return cls(profile=PROFILE_FULL, **overrides)

    @classmethod
    def from_settings(cls, settings, normalizer: Optional[Normalizer] = None) -> "EngineOptions":
        """Build options from the engine profile and the window/bound overrides in `settings`."""
        options = cls.for_profile(
            settings.engine_profile,
            allocator=AllocatorConfig(
                phase1_window=settings.phase1_window,
                phase2_window=settings.phase2_window,
                fallback_window=settings.fallback_window,
                extend_fallback_window=settings.extend_fallback_window,
                safety_factor=settings.safety_factor,
                max_stuck_rows=settings.max_stuck_rows,
            ),
            tail_deprioritized=settings.tail_deprioritized,
            normalizer=normalizer or DEFAULT_NORMALIZER,
        )
        return replace(options, weights=replace(options.weights, hero_spacing_rows=settings.hero_spacing_rows))

    def fingerprint(self) -> Dict[str, Any]:
        """Every option that can change an ordering, as JSON-serializable data."""
        return {
            "profile": self.profile,
            "weights": asdict(self.weights),
            "constraints": asdict(self.constraints),
            "allocator": asdict(self.allocator),
            "tail_deprioritized": self.tail_deprioritized,
            "normalizer": self.normalizer.to_dict(),
        }


@dataclass
class SortResult:
    ordering: List[ProductVariant]
    allocated: int
    basic: int
    invalid: int
    excluded: int
    flushed: int
    rows_built: int
    phase_counts: Dict[str, int] = field(default_factory=dict)
    violations: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def sections(self) -> Dict[str, int]:
        return {
            "allocated": self.allocated,
            "basic": self.basic,
            "invalid": self.invalid,
            "excluded": self.excluded,
        }


def sort_products(
    variants: Sequence[ProductVariant],
    rules: Sequence[RowRule] = (),
    excluded_types: Iterable[str] = (),
    deprioritized: Iterable[str] = (),
    options: EngineOptions = EngineOptions(),
) -> SortResult:
    """
    Order variants for the listing grid.

    The result always holds every input variant exactly once: allocated
    items first, then basic, invalid and excluded tails.
    """
    partition = partition_variants(
        variants,
        excluded_types=excluded_types,
        deprioritized=deprioritized,
        tail_deprioritized=options.tail_deprioritized,
    )

    allocation = allocate(
        partition.eligible,
        rules,
        low_priority=partition.low_priority,
        weights=options.weights,
        constraints=options.constraints,
        config=options.allocator,
        normalizer=options.normalizer,
    )
    ordering = assemble_order(allocation.ordering, partition)

    placed = len(allocation.ordering) - allocation.flushed
    violations = audit_grid(allocation.ordering[:placed], options.constraints, options.allocator.columns)
    if violations:
        logger.warning(f"Grid audit found {len(violations)} constraint violations")

    logger.info(
        f"Sorted {len(ordering)} variants [{options.profile}]: "
        f"rows={allocation.rows_built}, phases={allocation.phase_counts}, "
        f"flushed={allocation.flushed}, basic={len(partition.basic)}, "
        f"invalid={len(partition.invalid)}, excluded={len(partition.excluded)}"
    )

    return SortResult(
        ordering=ordering,
        allocated=len(allocation.ordering),
        basic=len(partition.basic),
        invalid=len(partition.invalid),
        excluded=len(partition.excluded),
        flushed=allocation.flushed,
        rows_built=allocation.rows_built,
        phase_counts=allocation.phase_counts,
        violations=violations,
    )
