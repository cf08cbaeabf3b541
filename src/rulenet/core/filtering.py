"""
Threshold filtering of rule sets.

All rule filters are one conjunction of four optional predicates:

    p_value   <= p_max
    accuracy  >= min_accuracy
    coverage  >= min_coverage
    |features| >= min_size

Because the conjunction is commutative, callers compose only the thresholds
they need and the order in which they are applied never changes the result.
Predicate sets combine with ``&`` into the stricter conjunction, so the usual
analysis chain "significant, then high-quality, then multi-feature" is a
single call:

    >>> from rulenet.core.filtering import filter_rules, SIGNIFICANT, HIGH_QUALITY, MULTI_FEATURE
    >>> network_rules = filter_rules(rules, SIGNIFICANT & HIGH_QUALITY & MULTI_FEATURE)
    >>>
    >>> # Keyword thresholds tighten a preset
    >>> strict = filter_rules(rules, SIGNIFICANT, min_accuracy=0.8)

Filtering keeps the relative order of the input and never deduplicates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from rulenet.core.rules import Rule, RuleSet

logger = logging.getLogger(__name__)

__all__ = [
    'RulePredicates',
    'filter_rules',
    'NO_RESTRICTION',
    'SIGNIFICANT',
    'HIGH_QUALITY',
    'MULTI_FEATURE',
]


def _stricter_max(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _stricter_min(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


@dataclass(frozen=True)
class RulePredicates:
    """
    Optional thresholds of the rule filter. None means "no restriction".

    Attributes:
        p_max: Keep rules with p_value <= p_max
        min_accuracy: Keep rules with accuracy >= min_accuracy
        min_coverage: Keep rules with coverage >= min_coverage
        min_size: Keep rules with at least this many antecedent features
    """
    p_max: Optional[float] = None
    min_accuracy: Optional[float] = None
    min_coverage: Optional[float] = None
    min_size: Optional[int] = None

    def __post_init__(self):
        for name in ('p_max', 'min_accuracy', 'min_coverage'):
            value = getattr(self, name)
            if value is not None and not (0.0 <= value <= 1.0):
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.min_size is not None:
            if isinstance(self.min_size, bool) or int(self.min_size) != self.min_size:
                raise ValueError(f"min_size must be an integer, got {self.min_size}")
            if self.min_size < 0:
                raise ValueError(f"min_size must be non-negative, got {self.min_size}")

    def __and__(self, other: "RulePredicates") -> "RulePredicates":
        """Stricter conjunction of two predicate sets."""
        if not isinstance(other, RulePredicates):
            return NotImplemented
        return RulePredicates(
            p_max=_stricter_max(self.p_max, other.p_max),
            min_accuracy=_stricter_min(self.min_accuracy, other.min_accuracy),
            min_coverage=_stricter_min(self.min_coverage, other.min_coverage),
            min_size=_stricter_min(self.min_size, other.min_size),
        )

    def accepts(self, rule: Rule) -> bool:
        """True when the rule satisfies every set threshold."""
        if self.p_max is not None and not rule.p_value <= self.p_max:
            return False
        if self.min_accuracy is not None and not rule.accuracy >= self.min_accuracy:
            return False
        if self.min_coverage is not None and not rule.coverage >= self.min_coverage:
            return False
        if self.min_size is not None and rule.size < self.min_size:
            return False
        return True

    def is_unrestricted(self) -> bool:
        return all(v is None for v in (self.p_max, self.min_accuracy, self.min_coverage, self.min_size))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'p_max': self.p_max,
            'min_accuracy': self.min_accuracy,
            'min_coverage': self.min_coverage,
            'min_size': self.min_size,
        }


NO_RESTRICTION = RulePredicates()
SIGNIFICANT = RulePredicates(p_max=0.05)
HIGH_QUALITY = RulePredicates(min_accuracy=0.55, min_coverage=0.2)
MULTI_FEATURE = RulePredicates(min_size=2)


def filter_rules(
    rules: RuleSet,
    predicates: Optional[RulePredicates] = None,
    *,
    p_max: Optional[float] = None,
    min_accuracy: Optional[float] = None,
    min_coverage: Optional[float] = None,
    min_size: Optional[int] = None,
) -> RuleSet:
    """
    Keep the rules that satisfy every threshold.

    Args:
        rules: Input rules (not modified)
        predicates: Predicate set to apply; keyword thresholds are combined
            with it into the stricter conjunction
        p_max, min_accuracy, min_coverage, min_size: Individual thresholds

    Returns:
        New RuleSet with the accepted rules in their input order. With no
        effective restriction the result equals the input.

    Raises:
        ValueError: If a threshold is out of range
    """
    combined = (predicates or NO_RESTRICTION) & RulePredicates(
        p_max=p_max,
        min_accuracy=min_accuracy,
        min_coverage=min_coverage,
        min_size=min_size,
    )
    if combined.is_unrestricted():
        return RuleSet(rules)

    kept = RuleSet(rule for rule in rules if combined.accepts(rule))
    logger.debug(f"Rule filter {combined.to_dict()}: kept {len(kept)}/{len(rules)} rules")
    if rules and not kept:
        logger.info(f"Rule filter {combined.to_dict()} removed all {len(rules)} rules")
    return kept
