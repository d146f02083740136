"""
Tail Classification (v1.0.0)
Splits variants into excluded / invalid / basic / eligible before allocation,
and assembles the final ordering afterwards.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Set

from grid_service.core.models import ProductVariant


@dataclass
class TailPartition:
    eligible: List[ProductVariant] = field(default_factory=list)
    basic: List[ProductVariant] = field(default_factory=list)
    invalid: List[ProductVariant] = field(default_factory=list)
    excluded: List[ProductVariant] = field(default_factory=list)
    # Deprioritized variants that stay in the eligible pool
    low_priority: Set[str] = field(default_factory=set)

    @property
    def total(self) -> int:
        return len(self.eligible) + len(self.basic) + len(self.invalid) + len(self.excluded)


def normalize_terms(terms: Iterable[str]) -> List[str]:
    """Upper-cased, trimmed, non-empty terms."""
    return [t.strip().upper() for t in terms or [] if t and t.strip()]


def is_deprioritized(variant: ProductVariant, terms: Sequence[str]) -> bool:
    """Matched by keyword in the title or by exact group key / commercial code."""
    if not terms:
        return False
    title = variant.title.upper()
    codes = {variant.group_key.upper(), variant.commercial_code.upper()}
    return any(term in title or term in codes for term in terms)


def title_sort_key(variant: ProductVariant):
    return (variant.title.casefold(), variant.group_key)


def partition_variants(
    variants: Sequence[ProductVariant],
    excluded_types: Iterable[str] = (),
    deprioritized: Iterable[str] = (),
    tail_deprioritized: bool = True,
) -> TailPartition:
    """
    Precedence: excluded > invalid > basic > eligible.

    With `tail_deprioritized` off, deprioritized variants stay eligible and are
    only flagged in `low_priority` (sunk by the pre-sort and the scoring penalty).
    """
    excluded = {t.strip().lower() for t in excluded_types or [] if t and t.strip()}
    terms = normalize_terms(deprioritized)
    partition = TailPartition()

    for variant in variants:
        if variant.garment_type.lower() in excluded:
            partition.excluded.append(variant)
        elif not variant.is_valid:
            partition.invalid.append(variant)
        elif is_deprioritized(variant, terms):
            if tail_deprioritized:
                partition.basic.append(variant)
            else:
                partition.eligible.append(variant)
                partition.low_priority.add(variant.group_key)
        else:
            partition.eligible.append(variant)

    return partition


def assemble_order(allocated: Sequence[ProductVariant], partition: TailPartition) -> List[ProductVariant]:
    """Allocated items, then basic and invalid (by title), then excluded in input order."""
    return (
        list(allocated)
        + sorted(partition.basic, key=title_sort_key)
        + sorted(partition.invalid, key=title_sort_key)
        + list(partition.excluded)
    )
