"""
Configuration file support for rulenet CLI.

Supports YAML and JSON config files with CLI argument override.

Example config (rulenet.yaml):

    rules: results/rosetta_rules.csv
    output: results/network
    filter:
      p_max: 0.05
      min_accuracy: 0.55
      min_coverage: 0.2
    network:
      min_size: 2
    mapping:
      source: symbol
      target: entrez
      species: human
    enrichment:
      organism: org.Hs.eg.db
      ontology: BP
"""

import json
from argparse import Namespace
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from rulenet.core.identifiers import Namespace as GeneNamespace
from rulenet.interfaces import AdjustmentMethod, Ontology


@dataclass
class FilterConfig:
    """Rule filter thresholds (None = no restriction)."""
    p_max: Optional[float] = 0.05
    min_accuracy: Optional[float] = None
    min_coverage: Optional[float] = None
    min_size: Optional[int] = None


@dataclass
class NetworkConfig:
    """Extra filter for the rules that feed the network."""
    min_size: int = 2


@dataclass
class MappingConfig:
    """Identifier mapping configuration."""
    source: str = "symbol"
    target: str = "entrez"
    species: str = "human"
    annotation_table: Optional[Path] = None
    cache_dir: Optional[Path] = None


@dataclass
class EnrichmentSettings:
    """Enrichment input configuration."""
    organism: str = "org.Hs.eg.db"
    ontology: str = "BP"
    p_value_cutoff: float = 0.05
    q_value_cutoff: float = 0.2
    adjustment_method: str = "BH"


# (section, key) -> argparse destination; section None = top level
_CONFIG_TO_ARG = {
    (None, 'rules'): 'rules',
    (None, 'output'): 'output',
    (None, 'namespace'): 'namespace',
    ('filter', 'p_max'): 'p_max',
    ('filter', 'min_accuracy'): 'min_accuracy',
    ('filter', 'min_coverage'): 'min_coverage',
    ('filter', 'min_size'): 'min_size',
    ('network', 'min_size'): 'network_min_size',
    ('mapping', 'source'): 'source_namespace',
    ('mapping', 'target'): 'target_namespace',
    ('mapping', 'species'): 'species',
    ('mapping', 'annotation_table'): 'annotation_table',
    ('mapping', 'cache_dir'): 'cache_dir',
    ('enrichment', 'organism'): 'organism',
    ('enrichment', 'ontology'): 'ontology',
    ('enrichment', 'p_value_cutoff'): 'p_value_cutoff',
    ('enrichment', 'q_value_cutoff'): 'q_value_cutoff',
    ('enrichment', 'adjustment_method'): 'adjustment_method',
}

_PATH_ARGS = {'rules', 'output', 'annotation_table', 'cache_dir'}

_SHORT_TO_LONG = {
    'r': 'rules',
    'o': 'output',
    'c': 'config',
    'd': 'decision',
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid

    Examples:
        >>> config = load_config(Path("rulenet.yaml"))
        >>> print(config['filter']['p_max'])
        0.05
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in ('.yaml', '.yml', '.json'):
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .yaml, .yml, or .json"
        )

    try:
        with open(config_path, 'r') as f:
            if suffix in ('.yaml', '.yml'):
                config = yaml.safe_load(f)
            else:
                config = json.load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """
    Merge a single config value with CLI argument.

    Rules:
    - CLI args ALWAYS override config if explicitly set
    - If CLI arg not set, use config value
    - If neither set, keep CLI default
    """
    if was_explicitly_set:
        return cli_value

    if config_value is not None:
        return config_value

    return cli_value


def _explicit_args(cli_args: Optional[List[str]]) -> set:
    """Destinations of the arguments the user typed on the command line."""
    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            explicit.add(arg[2:].split('=', 1)[0].replace('-', '_'))
        elif arg.startswith('-') and len(arg) == 2 and arg[1] in _SHORT_TO_LONG:
            explicit.add(_SHORT_TO_LONG[arg[1]])
    return explicit


def merge_config_with_args(config: Dict[str, Any], args: Namespace, cli_args: Optional[List[str]] = None) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Only destinations the current subcommand defines are touched, so one
    config file can serve every subcommand.

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values)
                  If None, assumes all args are defaults

    Returns:
        Updated Namespace with merged values
    """
    explicit = _explicit_args(cli_args)
    merged = Namespace(**vars(args))

    for (section, key), arg_name in _CONFIG_TO_ARG.items():
        if not hasattr(merged, arg_name):
            continue
        block = config if section is None else config.get(section) or {}
        if key not in block:
            continue

        config_value = block[key]
        if config_value is not None and arg_name in _PATH_ARGS:
            config_value = Path(config_value)

        setattr(merged, arg_name, _merge_value(
            getattr(merged, arg_name),
            config_value,
            arg_name in explicit,
        ))

    return merged


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Parameters:
        config: Configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    for section in ('filter', 'network', 'mapping', 'enrichment'):
        if config.get(section) is not None and not isinstance(config[section], dict):
            raise ValueError(f"Config section '{section}' must be a mapping")

    filter_section = config.get('filter') or {}
    for key in ('p_max', 'min_accuracy', 'min_coverage'):
        value = filter_section.get(key)
        if value is not None:
            if not isinstance(value, (int, float)) or not (0 <= value <= 1):
                raise ValueError(f"filter.{key} must be a number in [0, 1], got: {value}")

    for section in ('filter', 'network'):
        min_size = (config.get(section) or {}).get('min_size')
        if min_size is not None:
            if not isinstance(min_size, int) or isinstance(min_size, bool) or min_size < 0:
                raise ValueError(f"{section}.min_size must be a non-negative integer, got: {min_size}")

    mapping_section = config.get('mapping') or {}
    for key in ('source', 'target'):
        if key in mapping_section:
            GeneNamespace.parse(mapping_section[key])

    enrichment_section = config.get('enrichment') or {}
    if 'ontology' in enrichment_section:
        valid = [o.value for o in Ontology]
        if enrichment_section['ontology'] not in valid:
            raise ValueError(
                f"Invalid ontology '{enrichment_section['ontology']}'. "
                f"Choose from: {', '.join(valid)}"
            )
    if 'adjustment_method' in enrichment_section:
        valid = [m.value for m in AdjustmentMethod]
        if enrichment_section['adjustment_method'] not in valid:
            raise ValueError(
                f"Invalid adjustment method '{enrichment_section['adjustment_method']}'. "
                f"Choose from: {', '.join(valid)}"
            )
    for key in ('p_value_cutoff', 'q_value_cutoff'):
        value = enrichment_section.get(key)
        if value is not None:
            if not isinstance(value, (int, float)) or not (0 < value <= 1):
                raise ValueError(f"enrichment.{key} must be a number in (0, 1], got: {value}")
