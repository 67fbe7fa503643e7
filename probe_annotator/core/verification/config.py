"""Configuration for the Verification module."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..annotation.config import DEFAULT_NA_TOKENS


@dataclass
class VerificationConfig:
    """Configuration for checks over exported annotated tables.

    Attributes
    ----------
    min_value : float
        Lower bound of the plausible expression range
    max_value : float
        Upper bound of the plausible expression range (log2 scale default)
    top_n : int
        Genes listed by the gene distribution check
    max_listed : int
        Cap on items listed in check details
    log_scale_max : float
        Largest value still considered log-scale
    skip_checks : List[str]
        Check IDs to skip
    sep : str
        Field separator of the exports
    annotated_suffix : str
        File-name suffix of annotated exports
    summary_name : str
        File stem of the summary table
    na_tokens : List[str]
        Cell texts counted as missing
    """

    min_value: float = 0.0
    max_value: float = 20.0
    top_n: int = 10
    max_listed: int = 50
    log_scale_max: float = 100.0
    skip_checks: List[str] = field(default_factory=list)
    sep: str = "\t"
    annotated_suffix: str = "_annotated"
    summary_name: str = "annotation_summary"
    na_tokens: List[str] = field(default_factory=lambda: [""] + list(DEFAULT_NA_TOKENS))

    def __post_init__(self):
        if self.min_value > self.max_value:
            raise ValueError(
                f"min_value ({self.min_value}) must not exceed max_value ({self.max_value})"
            )
        if self.top_n < 1:
            raise ValueError(f"top_n must be positive, got {self.top_n}")

    def is_check_enabled(self, check_id: str) -> bool:
        """Check if a check is enabled."""
        return check_id not in self.skip_checks

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerificationConfig":
        """Create VerificationConfig from dictionary; unknown keys are ignored."""
        data = data or {}
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, path: Path) -> "VerificationConfig":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Handle nested verification section
        if "verification" in data:
            data = data["verification"]

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "min_value": self.min_value,
            "max_value": self.max_value,
            "top_n": self.top_n,
            "max_listed": self.max_listed,
            "log_scale_max": self.log_scale_max,
            "skip_checks": list(self.skip_checks),
            "sep": self.sep,
            "annotated_suffix": self.annotated_suffix,
            "summary_name": self.summary_name,
            "na_tokens": list(self.na_tokens),
        }
