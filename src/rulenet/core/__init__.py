"""
Core data model: gene identifiers, decision rules and rule filtering.
"""

from rulenet.core.identifiers import GeneIdentifier, Namespace
from rulenet.core.rules import (
    MalformedRuleError,
    Rule,
    RuleSet,
    parse_antecedent,
    rule_from_record,
    select_by_decision,
)
from rulenet.core.filtering import (
    RulePredicates,
    filter_rules,
    NO_RESTRICTION,
    SIGNIFICANT,
    HIGH_QUALITY,
    MULTI_FEATURE,
)

__all__ = [
    'GeneIdentifier',
    'Namespace',
    'MalformedRuleError',
    'Rule',
    'RuleSet',
    'parse_antecedent',
    'rule_from_record',
    'select_by_decision',
    'RulePredicates',
    'filter_rules',
    'NO_RESTRICTION',
    'SIGNIFICANT',
    'HIGH_QUALITY',
    'MULTI_FEATURE',
]
