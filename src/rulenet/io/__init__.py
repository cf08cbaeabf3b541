"""
Reading and writing rule tables, decision tables and network results.
"""

from rulenet.io.rule_tables import (
    RuleTableLoadResult,
    load_rule_table,
    rules_to_frame,
    write_rule_table,
)
from rulenet.io.decision_table import DECISION_COLUMN, build_decision_table
from rulenet.io.writers import (
    edges_frame,
    write_network,
    identifiers_frame,
    write_identifiers,
)

__all__ = [
    'RuleTableLoadResult',
    'load_rule_table',
    'rules_to_frame',
    'write_rule_table',
    'DECISION_COLUMN',
    'build_decision_table',
    'edges_frame',
    'write_network',
    'identifiers_frame',
    'write_identifiers',
]
