"""
Tests for config file loading, validation and CLI merging.
"""

import json
from argparse import Namespace
from pathlib import Path

import pytest
import yaml

from rulenet.cli.config import (
    FilterConfig,
    _explicit_args,
    load_config,
    merge_config_with_args,
    validate_config,
)


@pytest.fixture
def config_dict():
    return {
        'rules': 'results/rules.csv',
        'filter': {'p_max': 0.01, 'min_accuracy': 0.6},
        'mapping': {'source': 'symbol', 'target': 'ENTREZID'},
        'enrichment': {'ontology': 'MF', 'adjustment_method': 'BH'},
    }


def network_args(**overrides):
    """Parsed arguments as the network subcommand produces them."""
    defaults = FilterConfig()
    values = dict(
        rules=None, output=Path("results/network"), namespace="symbol", config=None,
        verbose=False, p_max=defaults.p_max, min_accuracy=None, min_coverage=None,
        min_size=None, preset=[], network_min_size=2, top_hubs=10,
    )
    values.update(overrides)
    return Namespace(**values)


class TestLoadConfig:
    """Test reading config files."""

    def test_yaml(self, tmp_path, config_dict):
        """Test loading a YAML config."""
        path = tmp_path / "rulenet.yaml"
        path.write_text(yaml.safe_dump(config_dict))
        assert load_config(path) == config_dict

    def test_json(self, tmp_path, config_dict):
        """Test loading a JSON config."""
        path = tmp_path / "rulenet.json"
        path.write_text(json.dumps(config_dict))
        assert load_config(path) == config_dict

    def test_empty_file(self, tmp_path):
        """Test that an empty YAML file is an empty config."""
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config(path) == {}

    def test_missing_file(self, tmp_path):
        """Test that a missing config raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_unsupported_format(self, tmp_path):
        """Test that unknown extensions are rejected."""
        path = tmp_path / "rulenet.toml"
        path.write_text("x = 1")
        with pytest.raises(ValueError, match="Unsupported"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        """Test that broken YAML is reported as ValueError."""
        path = tmp_path / "broken.yaml"
        path.write_text("filter: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping(self, tmp_path):
        """Test that a top-level list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_config(path)


class TestValidateConfig:
    """Test config validation."""

    def test_valid(self, config_dict):
        """Test that a valid config passes."""
        validate_config(config_dict)

    @pytest.mark.parametrize("config", [
        {'filter': [0.05]},
        {'filter': {'p_max': 1.5}},
        {'filter': {'min_accuracy': "high"}},
        {'filter': {'min_size': -1}},
        {'filter': {'min_size': 2.5}},
        {'network': {'min_size': -2}},
        {'mapping': {'target': 'uniprot'}},
        {'enrichment': {'ontology': 'KEGG'}},
        {'enrichment': {'adjustment_method': 'sidak'}},
        {'enrichment': {'q_value_cutoff': 0}},
    ])
    def test_invalid(self, config):
        """Test that invalid sections and values are rejected."""
        with pytest.raises(ValueError):
            validate_config(config)

    def test_null_sections(self):
        """Test that sections left empty in YAML count as empty mappings."""
        validate_config({'filter': None, 'network': None, 'mapping': None, 'enrichment': None})


class TestNullSections:
    """Test that validation and merging agree on empty sections."""

    def test_yaml_empty_section(self, tmp_path):
        """Test a YAML section header with no keys end to end."""
        path = tmp_path / "rulenet.yaml"
        path.write_text("rules: rules.csv\nfilter:\nnetwork:\n")
        config = load_config(path)
        assert config['filter'] is None

        validate_config(config)
        merged = merge_config_with_args(config, network_args(), cli_args=[])
        assert merged.p_max == FilterConfig().p_max
        assert merged.network_min_size == 2
        assert merged.rules == Path('rules.csv')


class TestMergeConfig:
    """Test priority of CLI arguments over config values over defaults."""

    def test_config_overrides_defaults(self, config_dict):
        """Test that config values replace unset CLI defaults."""
        merged = merge_config_with_args(config_dict, network_args(), cli_args=[])
        assert merged.p_max == 0.01
        assert merged.min_accuracy == 0.6
        assert merged.rules == Path('results/rules.csv')

    def test_explicit_cli_wins(self, config_dict):
        """Test that explicitly passed CLI arguments beat the config."""
        args = network_args(p_max=0.05)
        merged = merge_config_with_args(config_dict, args, cli_args=['--p-max', '0.05'])
        assert merged.p_max == 0.05
        assert merged.min_accuracy == 0.6

    def test_explicit_equals_syntax(self, config_dict):
        """Test that --opt=value counts as explicit."""
        merged = merge_config_with_args(config_dict, network_args(p_max=0.2), cli_args=['--p-max=0.2'])
        assert merged.p_max == 0.2

    def test_network_section(self):
        """Test that network.min_size feeds the network filter argument."""
        merged = merge_config_with_args({'network': {'min_size': 3}}, network_args(), cli_args=[])
        assert merged.network_min_size == 3
        assert merged.min_size is None

    def test_unknown_destinations_ignored(self, config_dict):
        """Test that sections for other subcommands are not added."""
        merged = merge_config_with_args(config_dict, network_args(), cli_args=[])
        assert not hasattr(merged, 'ontology')
        assert not hasattr(merged, 'target_namespace')

    def test_original_args_unchanged(self, config_dict):
        """Test that merging returns a new namespace."""
        args = network_args()
        merge_config_with_args(config_dict, args, cli_args=[])
        assert args.p_max == FilterConfig().p_max

    def test_short_flags(self):
        """Test that short options map to their destinations."""
        assert _explicit_args(['-r', 'x.csv', '-o', 'out', '--min-size', '2']) == {
            'rules', 'output', 'min_size',
        }
