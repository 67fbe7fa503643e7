"""Run configuration loader and validator."""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from probe_annotator.core.annotation.config import AnnotationConfig
from probe_annotator.core.verification.config import VerificationConfig
from probe_annotator.io import resolve_path


class RunConfig:
    """Loads and manages an annotation run from a YAML file.

    Provides YAML-based configuration loading with template resolution,
    dataset/platform parsing and validation.

    Parameters
    ----------
    config_path : str
        Path to the YAML configuration file

    Attributes
    ----------
    config_path : Path
        Path to the configuration file
    raw_config : Dict[str, Any]
        Raw configuration dictionary loaded from YAML
    output_dir : Path
        Directory for all run outputs
    platforms : Dict[str, Path]
        Platform ID -> annotation file
    datasets : Dict[str, Path]
        Dataset ID -> expression file, in run order
    assignments : Dict[str, str]
        Dataset ID -> platform ID
    annotation : AnnotationConfig
        Annotation settings
    verification : VerificationConfig
        Verification settings
    platform_registry : Path, optional
        YAML file with extra platform registry entries

    Example
    -------
    >>> config = RunConfig("run.yaml")
    >>> config.load()
    >>> config.parse()
    >>> problems = config.validate()

    A minimal file::

        global:
          data_root: /data/geo
        output_dir: out/
        platforms:
          GPL96: "{global.data_root}/GPL96.annot.gz"
        datasets:
          GSE2034:
            path: "{global.data_root}/GSE2034_series_matrix.txt.gz"
            platform: GPL96
        settings:
          n_jobs: 2
        verification:
          max_value: 16
    """

    def __init__(self, config_path: str):
        self.config_path = Path(config_path)
        self.base_dir = self.config_path.parent
        self.raw_config: Dict[str, Any] = {}
        self.output_dir: Path = self.base_dir / "output"
        self.platforms: Dict[str, Path] = {}
        self.datasets: Dict[str, Path] = {}
        self.assignments: Dict[str, str] = {}
        self.annotation = AnnotationConfig()
        self.verification = VerificationConfig()
        self.platform_registry: Optional[Path] = None

    def load(self) -> None:
        """Load YAML configuration file.

        Raises
        ------
        FileNotFoundError
            If config file doesn't exist
        yaml.YAMLError
            If YAML is malformed
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, "r") as f:
            self.raw_config = yaml.safe_load(f) or {}

        if not isinstance(self.raw_config, dict):
            raise ValueError(f"Config file {self.config_path} must hold a mapping")

    def _path(self, value: Any) -> Path:
        return resolve_path(self.resolve_paths(str(value)), self.base_dir)

    def parse(self) -> None:
        """Convert the raw YAML into run settings.

        Resolves path templates and relative paths, and merges per-dataset
        ``platform`` entries with the ``assignments`` section (the latter
        wins).

        Raises
        ------
        KeyError
            If the datasets or platforms section is missing
        ValueError
            If a dataset entry has no path
        """
        for section in ("platforms", "datasets"):
            if section not in self.raw_config:
                raise KeyError(f"No '{section}' section in configuration")

        self.output_dir = self._path(self.raw_config.get("output_dir", "output"))

        self.platforms = {
            str(pid): self._path(path) for pid, path in self.raw_config["platforms"].items()
        }

        self.datasets = {}
        assignments: Dict[str, str] = {}
        for dataset_id, entry in self.raw_config["datasets"].items():
            dataset_id = str(dataset_id)
            if isinstance(entry, dict):
                if "path" not in entry:
                    raise ValueError(f"Dataset '{dataset_id}' missing required field 'path'")
                self.datasets[dataset_id] = self._path(entry["path"])
                if entry.get("platform") is not None:
                    assignments[dataset_id] = str(entry["platform"])
            else:
                self.datasets[dataset_id] = self._path(entry)

        for dataset_id, platform_id in (self.raw_config.get("assignments") or {}).items():
            assignments[str(dataset_id)] = str(platform_id)
        self.assignments = assignments

        self.annotation = AnnotationConfig.from_dict(self.raw_config.get("settings") or {})
        # The checker reads the tables this run writes unless told otherwise
        verification = dict(self.raw_config.get("verification") or {})
        verification.setdefault("sep", self.annotation.output.sep)
        verification.setdefault("annotated_suffix", self.annotation.output.annotated_suffix)
        self.verification = VerificationConfig.from_dict(verification)

        registry = self.raw_config.get("platform_registry")
        self.platform_registry = self._path(registry) if registry else None

    def resolve_paths(self, path_template: str) -> str:
        """Resolve path templates like {global.data_root}.

        Templates can reference any key of the YAML file by dotted path,
        typically ``{global.param_name}``. Unknown references are left as is.

        Parameters
        ----------
        path_template : str
            Path possibly containing {...} templates

        Returns
        -------
        str
            Resolved path with templates replaced by actual values
        """
        if "{" not in path_template:
            return path_template

        pattern = r"\{([^}]+)\}"

        def replace_template(match):
            value = self.raw_config
            for part in match.group(1).split("."):
                if not isinstance(value, dict):
                    return match.group(0)
                value = value.get(part)

            if value is None or isinstance(value, (dict, list)):
                return match.group(0)
            return str(value)

        resolved = re.sub(pattern, replace_template, path_template)

        if resolved != path_template and "{" in resolved:
            return self.resolve_paths(resolved)

        return resolved

    def validate(self) -> List[str]:
        """Check the parsed run for problems without raising.

        Returns
        -------
        List[str]
            Missing files, unassigned datasets and unknown platforms
        """
        errors = []

        for platform_id, path in self.platforms.items():
            if not path.exists():
                errors.append(f"Platform '{platform_id}': file not found: {path}")

        for dataset_id, path in self.datasets.items():
            if not path.exists():
                errors.append(f"Dataset '{dataset_id}': file not found: {path}")
            platform_id = self.assignments.get(dataset_id)
            if platform_id is None:
                errors.append(f"Dataset '{dataset_id}' has no platform assignment")
            elif platform_id not in self.platforms:
                errors.append(f"Dataset '{dataset_id}' assigned to unknown platform '{platform_id}'")

        for dataset_id in self.assignments:
            if dataset_id not in self.datasets:
                errors.append(f"Assignment for unknown dataset '{dataset_id}'")

        if self.platform_registry is not None and not self.platform_registry.exists():
            errors.append(f"Platform registry not found: {self.platform_registry}")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert the parsed run to a dictionary.

        Returns
        -------
        Dict[str, Any]
            Configuration with resolved paths
        """
        return {
            "config_path": str(self.config_path),
            "output_dir": str(self.output_dir),
            "platforms": {pid: str(p) for pid, p in self.platforms.items()},
            "datasets": {did: str(p) for did, p in self.datasets.items()},
            "assignments": dict(self.assignments),
            "platform_registry": str(self.platform_registry) if self.platform_registry else None,
            "settings": self.annotation.to_dict(),
            "verification": self.verification.to_dict(),
        }

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any], base_dir: Optional[str] = None) -> "RunConfig":
        """Create and parse a RunConfig from a dictionary.

        Parameters
        ----------
        config_dict : Dict[str, Any]
            Configuration dictionary
        base_dir : str, optional
            Directory relative paths resolve against (default: cwd)

        Returns
        -------
        RunConfig
            Parsed config object
        """
        config = cls(str(Path(base_dir or ".") / "run.yaml"))
        config.raw_config = config_dict
        config.parse()
        return config
