"""
Rule table loading and writing.

Rule-induction engines such as R.ROSETTA export rules as a table with one
row per rule:

    features,levels,decision,supportRHS,accuracyRHS,coverageRHS,pValue
    "CD3E,IL7R","3,3",cluster_1,120,0.91,0.42,1.2e-08
    "MS4A1","3",cluster_4,88,0.87,0.35,3.1e-05

Rows whose antecedent or statistics cannot be parsed are skipped; the number
of skipped rows is reported alongside the rules so a broken export does not
pass silently.

Examples:
    >>> from pathlib import Path
    >>> from rulenet.io.rule_tables import load_rule_table
    >>>
    >>> result = load_rule_table(Path("rules.csv"))
    >>> print(f"{len(result.rules)} rules, {result.n_malformed} malformed rows skipped")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union
import logging

import pandas as pd

from rulenet.core.identifiers import Namespace
from rulenet.core.rules import (
    ANTECEDENT_SEPARATOR,
    MalformedRuleError,
    RuleSet,
    rule_from_record,
)

logger = logging.getLogger(__name__)

__all__ = [
    'REQUIRED_COLUMNS',
    'RuleTableLoadResult',
    'load_rule_table',
    'rules_to_frame',
    'write_rule_table',
]

REQUIRED_COLUMNS = ('features', 'decision', 'pValue', 'accuracyRHS', 'coverageRHS')

RULE_COLUMNS = ['features', 'levels', 'decision', 'pValue', 'accuracyRHS', 'coverageRHS', 'supportRHS']


@dataclass(frozen=True)
class RuleTableLoadResult:
    """
    Rules parsed from a table.

    Attributes:
        rules: Parsed rules, in table order
        n_malformed: Number of rows skipped because they could not be parsed
        malformed_rows: Table positions (0-based) of the skipped rows
    """
    rules: RuleSet
    n_malformed: int = 0
    malformed_rows: Tuple[int, ...] = ()


def load_rule_table(
    source: Union[str, Path, pd.DataFrame],
    namespace: Union[Namespace, str] = Namespace.SYMBOL,
    separator: str = ANTECEDENT_SEPARATOR,
    **read_csv_kwargs
) -> RuleTableLoadResult:
    """
    Load rules from a CSV/TSV file or an in-memory DataFrame.

    Args:
        source: Path to the rule table, or the table itself
        namespace: Namespace of the antecedent feature names
        separator: Separator between features within an antecedent
        **read_csv_kwargs: Passed to pandas.read_csv (e.g. sep='\\t')

    Returns:
        RuleTableLoadResult with the parsed rules and malformed row count

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If required columns are missing
    """
    if isinstance(source, pd.DataFrame):
        table = source
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Rule table not found: {path}")
        if 'sep' not in read_csv_kwargs and path.suffix.lower() in ('.tsv', '.txt'):
            read_csv_kwargs['sep'] = '\t'
        # keep '3' / '7157' as text rather than numbers
        read_csv_kwargs.setdefault('dtype', {'features': str, 'levels': str, 'decision': str})
        table = pd.read_csv(path, **read_csv_kwargs)
        logger.info(f"Loaded rule table {path}: {len(table)} rows")

    missing = [col for col in REQUIRED_COLUMNS if col not in table.columns]
    if missing:
        raise ValueError(
            f"Rule table is missing required columns {missing}; got {list(table.columns)}"
        )

    namespace = Namespace.parse(namespace)
    rules = []
    malformed = []
    for position, record in enumerate(table.to_dict(orient='records')):
        try:
            rules.append(rule_from_record(record, namespace, separator))
        except MalformedRuleError as e:
            malformed.append(position)
            logger.warning(f"Skipping malformed rule at row {position}: {e}")

    if malformed:
        logger.warning(f"Skipped {len(malformed)}/{len(table)} malformed rules")

    return RuleTableLoadResult(
        rules=RuleSet(rules),
        n_malformed=len(malformed),
        malformed_rows=tuple(malformed),
    )


def rules_to_frame(rules: RuleSet) -> pd.DataFrame:
    """Rules as an R.ROSETTA-style table, one row per rule in rule order."""
    return pd.DataFrame([rule.to_dict() for rule in rules], columns=RULE_COLUMNS)


def write_rule_table(rules: RuleSet, path: Path) -> None:
    """
    Write rules to CSV in the layout load_rule_table reads.

    Creates parent directories if they don't exist; overwrites existing files.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rules_to_frame(rules).to_csv(path, index=False)
    logger.info(f"Wrote {len(rules)} rules to {path}")
