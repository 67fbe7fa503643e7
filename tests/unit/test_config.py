"""Unit tests for configuration classes and the platform registry."""

import pytest
import yaml

from probe_annotator.config import (
    PlatformConfig,
    find_platform_config,
    get_platform_config,
    list_available_platforms,
    list_platform_aliases,
    load_platform_configs,
)
from probe_annotator.core.annotation import AnnotationConfig
from probe_annotator.core.verification import VerificationConfig


class TestPlatformRegistry:
    """Tests for the platform registry."""

    def test_builtin_platforms(self):
        """Common Affymetrix, Agilent and Illumina arrays are known."""
        available = list_available_platforms()
        for platform_id in ["GPL96", "GPL570", "GPL6244", "GPL6480", "GPL10558"]:
            assert platform_id in available
        assert "generic" not in available

    def test_alias_lookup(self):
        """Aliases resolve case- and separator-insensitively."""
        assert get_platform_config("hg-u133a").platform_id == "GPL96"
        assert get_platform_config("HG-U133 Plus 2").platform_id == "GPL570"
        assert list_platform_aliases()["hg_u133a"] == "GPL96"

    def test_unknown_platform(self):
        """get_platform_config raises for unknown platforms; find returns None."""
        with pytest.raises(ValueError):
            get_platform_config("GPL_DOES_NOT_EXIST")
        assert find_platform_config("GPL_DOES_NOT_EXIST") is None

    def test_generic_config(self):
        """None and 'generic' return the config without pinned columns."""
        config = get_platform_config(None)
        assert config.platform_id == "generic"
        assert not config.has_pinned_columns

    def test_load_from_yaml(self, tmp_path):
        """Registry files add platforms with pinned columns."""
        path = tmp_path / "platforms.yaml"
        with open(path, "w") as f:
            yaml.safe_dump(
                {
                    "platforms": [
                        {
                            "platform_id": "GPL_YAML",
                            "title": "Custom array",
                            "aliases": ["custom-v1"],
                            "symbol_column": "GENE_NAME",
                        }
                    ]
                },
                f,
            )
        configs = load_platform_configs(path)
        assert [c.platform_id for c in configs] == ["GPL_YAML"]
        assert get_platform_config("custom-v1").symbol_column == "GENE_NAME"

    def test_entry_without_id(self, tmp_path):
        """Registry entries must name their platform."""
        path = tmp_path / "bad.yaml"
        path.write_text("- title: nameless\n")
        with pytest.raises(ValueError):
            load_platform_configs(path)

    def test_platform_config_dict(self):
        """PlatformConfig survives a dictionary round trip."""
        config = PlatformConfig(platform_id="GPL1", aliases=["one"], probe_column="SPOT")
        assert PlatformConfig.from_dict(config.to_dict()) == config


class TestAnnotationConfig:
    """Tests for AnnotationConfig."""

    def test_defaults(self):
        """Defaults use tab separators and sequential processing."""
        config = AnnotationConfig()
        assert config.n_jobs == 1
        assert config.output.sep == "\t"
        assert config.resolver.gene_symbol_aliases[0] == "Gene Symbol"
        assert "" in config.loader.na_tokens

    def test_from_dict_partial(self):
        """Omitted sections keep their defaults."""
        config = AnnotationConfig.from_dict({"n_jobs": 4, "output": {"sep": ","}})
        assert config.n_jobs == 4
        assert config.output.sep == ","
        assert config.output.annotated_suffix == "_annotated"
        assert config.loader.allow_missing

    def test_dict_round_trip(self):
        """to_dict output rebuilds an equal config."""
        config = AnnotationConfig.from_dict(
            {"resolver": {"gene_symbol_aliases": ["Symbol"]}, "low_retention_warning": 20}
        )
        assert AnnotationConfig.from_dict(config.to_dict()) == config

    def test_from_yaml_nested(self, tmp_path):
        """An 'annotation' section of a run file is picked up."""
        path = tmp_path / "run.yaml"
        path.write_text("annotation:\n  n_jobs: 2\n  keep_matrices: false\n")
        config = AnnotationConfig.from_yaml(path)
        assert config.n_jobs == 2
        assert not config.keep_matrices


class TestVerificationConfig:
    """Tests for VerificationConfig."""

    def test_defaults(self):
        """Default bounds cover log2 expression values."""
        config = VerificationConfig()
        assert (config.min_value, config.max_value) == (0.0, 20.0)
        assert config.top_n == 10

    def test_unknown_keys_ignored(self):
        """Keys that are not settings are dropped."""
        config = VerificationConfig.from_dict({"max_value": 16.0, "colour": "red"})
        assert config.max_value == 16.0

    def test_skip_checks(self):
        """Skipped checks are disabled."""
        config = VerificationConfig(skip_checks=["VALUE_RANGE"])
        assert not config.is_check_enabled("VALUE_RANGE")
        assert config.is_check_enabled("SCHEMA")

    def test_invalid_top_n(self):
        """top_n must be positive."""
        with pytest.raises(ValueError):
            VerificationConfig(top_n=0)

    def test_from_yaml_nested(self, tmp_path):
        """A 'verification' section of a run file is picked up."""
        path = tmp_path / "run.yaml"
        path.write_text("verification:\n  max_value: 16\n  top_n: 5\n")
        config = VerificationConfig.from_yaml(path)
        assert config.max_value == 16
        assert config.top_n == 5
        assert VerificationConfig.from_dict(config.to_dict()) == config
