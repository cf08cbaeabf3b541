"""
Decision rules and rule sets.

A rule says "cells whose expression of these genes falls in these levels
belong to this cluster", together with the statistics the rule-induction
engine reports for it:

    features   GENE1,GENE2        antecedent (left-hand side)
    levels     3,1                discretized level per feature
    decision   cluster_4          decision class (right-hand side)
    pValue     0.003              significance of the rule
    accuracyRHS / coverageRHS     quality of the rule for its class

Rules and rule sets are immutable. Every filtering or selection step returns
a new RuleSet and keeps the relative order of its input.

Examples:
    >>> from rulenet.core.rules import Rule, RuleSet, parse_antecedent, select_by_decision
    >>> from rulenet.core.identifiers import Namespace
    >>>
    >>> features = parse_antecedent("CD3E,IL7R", Namespace.SYMBOL)
    >>> rule = Rule(features, "cluster_1", p_value=0.01, accuracy=0.9, coverage=0.5)
    >>> rules = RuleSet([rule])
    >>> len(select_by_decision(rules, "cluster_1"))
    1
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union, overload

from rulenet.core.identifiers import GeneIdentifier, Namespace

__all__ = [
    'MalformedRuleError',
    'Rule',
    'RuleSet',
    'parse_antecedent',
    'rule_from_record',
    'select_by_decision',
]

ANTECEDENT_SEPARATOR = ","


class MalformedRuleError(Exception):
    """Raised when a rule's antecedent or statistics cannot be parsed."""
    pass


def _check_fraction(name: str, value: float) -> None:
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0, 1], got {value}")


@dataclass(frozen=True)
class Rule:
    """
    A single decision rule.

    Attributes:
        features: Antecedent genes, in the order the engine reported them
        decision: Decision class (cluster identity) predicted by the rule
        p_value: Rule p-value
        accuracy: Fraction of the rule's matches that are correct (accuracyRHS)
        coverage: Fraction of decision-class objects matched (coverageRHS)
        levels: Discretized level per feature; empty when not reported
        support: Number of decision-class objects matched (supportRHS)
    """
    features: Tuple[GeneIdentifier, ...]
    decision: str
    p_value: float
    accuracy: float
    coverage: float
    levels: Tuple[str, ...] = ()
    support: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'features', tuple(self.features))
        object.__setattr__(self, 'levels', tuple(self.levels))
        for feature in self.features:
            if not isinstance(feature, GeneIdentifier):
                raise TypeError(
                    f"Rule features must be GeneIdentifier, got {type(feature).__name__}"
                )
        if self.levels and len(self.levels) != len(self.features):
            raise ValueError(
                f"Rule has {len(self.features)} features but {len(self.levels)} levels"
            )
        _check_fraction("p_value", self.p_value)
        _check_fraction("accuracy", self.accuracy)
        _check_fraction("coverage", self.coverage)

    @property
    def size(self) -> int:
        """Number of antecedent features."""
        return len(self.features)

    def to_dict(self) -> dict:
        return {
            'features': ANTECEDENT_SEPARATOR.join(f.value for f in self.features),
            'levels': ANTECEDENT_SEPARATOR.join(self.levels),
            'decision': self.decision,
            'pValue': self.p_value,
            'accuracyRHS': self.accuracy,
            'coverageRHS': self.coverage,
            'supportRHS': self.support,
        }


class RuleSet:
    """
    Immutable, ordered sequence of rules.

    Order is the order in which rules were produced or filtered; a RuleSet is
    never re-sorted implicitly. Two rule sets are equal when they hold equal
    rules in the same order.
    """

    __slots__ = ('_rules',)

    def __init__(self, rules: Iterable[Rule] = ()):
        rules = tuple(rules)
        for rule in rules:
            if not isinstance(rule, Rule):
                raise TypeError(f"RuleSet items must be Rule, got {type(rule).__name__}")
        self._rules = rules

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    @overload
    def __getitem__(self, index: int) -> Rule: ...

    @overload
    def __getitem__(self, index: slice) -> "RuleSet": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return RuleSet(self._rules[index])
        return self._rules[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RuleSet):
            return NotImplemented
        return self._rules == other._rules

    def __hash__(self) -> int:
        return hash(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet(n_rules={len(self._rules)}, decisions={self.decisions()})"

    def decisions(self) -> List[str]:
        """Distinct decision classes in order of first appearance."""
        return list(dict.fromkeys(rule.decision for rule in self._rules))

    def genes(self) -> List[GeneIdentifier]:
        """Distinct antecedent genes in order of first appearance."""
        return list(dict.fromkeys(f for rule in self._rules for f in rule.features))


def select_by_decision(rules: RuleSet, label: str) -> RuleSet:
    """
    Select the rules predicting one decision class.

    Matching is exact string equality on the decision; relative order of the
    matching rules is preserved.

    Args:
        rules: Rules to select from
        label: Decision class, e.g. 'cluster_4'

    Returns:
        New RuleSet, empty when no rule predicts the label
    """
    return RuleSet(rule for rule in rules if rule.decision == label)


def parse_antecedent(
    text: Any,
    namespace: Union[Namespace, str] = Namespace.SYMBOL,
    separator: str = ANTECEDENT_SEPARATOR,
) -> Tuple[GeneIdentifier, ...]:
    """
    Parse an antecedent string such as 'CD3E,IL7R' into gene identifiers.

    Raises:
        MalformedRuleError: If the value is missing, not text, or contains an
            empty feature name
    """
    if text is None or (isinstance(text, float) and math.isnan(text)):
        raise MalformedRuleError("Antecedent is missing")
    if not isinstance(text, str):
        raise MalformedRuleError(f"Antecedent must be text, got {type(text).__name__}")

    namespace = Namespace.parse(namespace)
    tokens = [token.strip() for token in text.split(separator)]
    if any(not token for token in tokens):
        raise MalformedRuleError(f"Antecedent '{text}' contains an empty feature")
    return tuple(GeneIdentifier(namespace, token) for token in tokens)


def _parse_levels(text: Any, separator: str) -> Tuple[str, ...]:
    if text is None or (isinstance(text, float) and math.isnan(text)):
        return ()
    return tuple(token.strip() for token in str(text).split(separator))


def _parse_float(record: Mapping[str, Any], key: str) -> float:
    try:
        value = float(record[key])
    except KeyError:
        raise MalformedRuleError(f"Rule is missing '{key}'")
    except (TypeError, ValueError):
        raise MalformedRuleError(f"Rule has non-numeric {key}: {record[key]!r}")
    if math.isnan(value):
        raise MalformedRuleError(f"Rule has missing {key}")
    return value


def rule_from_record(
    record: Mapping[str, Any],
    namespace: Union[Namespace, str] = Namespace.SYMBOL,
    separator: str = ANTECEDENT_SEPARATOR,
) -> Rule:
    """
    Build a Rule from one row of an R.ROSETTA-style rule table.

    Expected keys: 'features', 'decision', 'pValue', 'accuracyRHS',
    'coverageRHS'; optional 'levels' and 'supportRHS'.

    Raises:
        MalformedRuleError: If any required field cannot be parsed
    """
    features = parse_antecedent(record.get('features'), namespace, separator)
    levels = _parse_levels(record.get('levels'), separator)
    if levels and len(levels) != len(features):
        raise MalformedRuleError(
            f"Antecedent has {len(features)} features but {len(levels)} levels"
        )

    decision = record.get('decision')
    if decision is None or (isinstance(decision, float) and math.isnan(decision)):
        raise MalformedRuleError("Rule is missing its decision class")

    support = record.get('supportRHS')
    if support is None or (isinstance(support, float) and math.isnan(support)):
        support = None
    else:
        try:
            value = float(support)
        except (TypeError, ValueError):
            raise MalformedRuleError(f"Rule has non-numeric supportRHS: {support!r}")
        if not value.is_integer():
            raise MalformedRuleError(f"Rule has non-integer supportRHS: {support!r}")
        support = int(value)

    try:
        return Rule(
            features=features,
            decision=str(decision),
            p_value=_parse_float(record, 'pValue'),
            accuracy=_parse_float(record, 'accuracyRHS'),
            coverage=_parse_float(record, 'coverageRHS'),
            levels=levels,
            support=support,
        )
    except ValueError as e:
        raise MalformedRuleError(str(e)) from e
