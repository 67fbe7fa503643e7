"""Centralized platform-specific configuration.

This module provides a registry of known microarray platforms. An entry can
pin the probe and gene-symbol column names for a platform whose annotation
file does not follow the usual aliases; entries without pinned columns fall
back to alias resolution.

Example
-------
>>> from probe_annotator.config import get_platform_config
>>> config = get_platform_config("hg-u133_plus_2")
>>> config.platform_id
'GPL570'
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


@dataclass
class PlatformConfig:
    """Configuration for a microarray platform.

    Attributes
    ----------
    platform_id : str
        Canonical platform accession (e.g. "GPL570")
    title : str
        Human-readable chip name
    vendor : str
        Array manufacturer
    aliases : List[str]
        Alternative names for this platform
    probe_column : str, optional
        Pinned probe-ID column name
    symbol_column : str, optional
        Pinned gene-symbol column name
    """

    platform_id: str
    title: str = ""
    vendor: str = ""
    aliases: List[str] = field(default_factory=list)
    probe_column: Optional[str] = None
    symbol_column: Optional[str] = None

    @property
    def has_pinned_columns(self) -> bool:
        return self.probe_column is not None or self.symbol_column is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlatformConfig":
        """Create PlatformConfig from dictionary."""
        return cls(
            platform_id=str(data.get("platform_id", data.get("platform", ""))),
            title=data.get("title", ""),
            vendor=data.get("vendor", ""),
            aliases=list(data.get("aliases", [])),
            probe_column=data.get("probe_column"),
            symbol_column=data.get("symbol_column"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "platform_id": self.platform_id,
            "title": self.title,
            "vendor": self.vendor,
            "aliases": list(self.aliases),
            "probe_column": self.probe_column,
            "symbol_column": self.symbol_column,
        }


# =============================================================================
# Registry
# =============================================================================

# Global registry of platform configurations, keyed by normalized ID
PLATFORM_CONFIG_REGISTRY: Dict[str, PlatformConfig] = {}

# Aliases map normalized platform aliases to normalized IDs
PLATFORM_ALIASES: Dict[str, str] = {}

_BUILTINS_LOADED = False

BUILTIN_PLATFORMS: List[PlatformConfig] = [
    PlatformConfig(
        platform_id="GPL96",
        title="Affymetrix Human Genome U133A Array",
        vendor="Affymetrix",
        aliases=["HG-U133A"],
    ),
    PlatformConfig(
        platform_id="GPL570",
        title="Affymetrix Human Genome U133 Plus 2.0 Array",
        vendor="Affymetrix",
        aliases=["HG-U133_Plus_2", "HG-U133 Plus 2"],
    ),
    PlatformConfig(
        platform_id="GPL6244",
        title="Affymetrix Human Gene 1.0 ST Array",
        vendor="Affymetrix",
        aliases=["HuGene-1_0-st"],
    ),
    PlatformConfig(
        platform_id="GPL6480",
        title="Agilent-014850 Whole Human Genome Microarray 4x44K G4112F",
        vendor="Agilent",
        aliases=["Agilent-014850"],
    ),
    PlatformConfig(
        platform_id="GPL10558",
        title="Illumina HumanHT-12 V4.0 expression beadchip",
        vendor="Illumina",
        aliases=["HumanHT-12 V4", "HumanHT-12_V4"],
    ),
]


def _normalize(name: str) -> str:
    return str(name).strip().lower().replace(" ", "_").replace("-", "_")


def register_platform_config(config: PlatformConfig) -> None:
    """Register a platform configuration, replacing any previous entry.

    Parameters
    ----------
    config : PlatformConfig
        Configuration to register
    """
    _ensure_builtins_loaded()
    key = _normalize(config.platform_id)
    PLATFORM_CONFIG_REGISTRY[key] = config
    for alias in config.aliases:
        PLATFORM_ALIASES[_normalize(alias)] = key


def find_platform_config(platform: Optional[str]) -> Optional[PlatformConfig]:
    """Look up a platform by ID or alias, returning None when unknown."""
    _ensure_builtins_loaded()
    if platform is None:
        return None
    key = _normalize(platform)
    key = PLATFORM_ALIASES.get(key, key)
    return PLATFORM_CONFIG_REGISTRY.get(key)


def get_platform_config(platform: Optional[str] = None) -> PlatformConfig:
    """Get platform configuration by ID or alias.

    Parameters
    ----------
    platform : str, optional
        Platform ID or alias. If None or "generic", returns generic config.

    Returns
    -------
    PlatformConfig
        Platform configuration

    Raises
    ------
    ValueError
        If platform is not registered
    """
    if platform is None or _normalize(platform) == "generic":
        return _get_generic_config()

    config = find_platform_config(platform)
    if config is None:
        available = list_available_platforms()
        raise ValueError(
            f"Unknown platform: '{platform}'. Available: {available}"
        )
    return config


def list_available_platforms() -> List[str]:
    """List all registered platform IDs.

    Returns
    -------
    List[str]
        Registered platform IDs (canonical spelling), sorted
    """
    _ensure_builtins_loaded()
    return sorted(
        cfg.platform_id for key, cfg in PLATFORM_CONFIG_REGISTRY.items() if key != "generic"
    )


def list_platform_aliases() -> Dict[str, str]:
    """List all platform aliases.

    Returns
    -------
    Dict[str, str]
        Map of alias -> canonical platform ID
    """
    _ensure_builtins_loaded()
    return {
        alias: PLATFORM_CONFIG_REGISTRY[key].platform_id
        for alias, key in PLATFORM_ALIASES.items()
    }


def load_platform_configs(path: Path) -> List[PlatformConfig]:
    """Register platform configurations from a YAML file.

    The file holds either a list of entries or a ``platforms`` key with one.

    Parameters
    ----------
    path : Path
        Path to YAML file

    Returns
    -------
    List[PlatformConfig]
        Registered configurations
    """
    with open(path) as f:
        data = yaml.safe_load(f) or []

    if isinstance(data, dict):
        data = data.get("platforms", [])

    configs = []
    for entry in data:
        config = PlatformConfig.from_dict(entry)
        if not config.platform_id:
            raise ValueError(f"Platform entry without platform_id in {path}: {entry}")
        register_platform_config(config)
        configs.append(config)
    return configs


def _get_generic_config() -> PlatformConfig:
    """Get generic config (alias resolution, no pinned columns)."""
    if "generic" not in PLATFORM_CONFIG_REGISTRY:
        PLATFORM_CONFIG_REGISTRY["generic"] = PlatformConfig(
            platform_id="generic",
            title="Generic platform",
        )
    return PLATFORM_CONFIG_REGISTRY["generic"]


def _ensure_builtins_loaded() -> None:
    """Ensure builtin configs are loaded."""
    global _BUILTINS_LOADED
    if _BUILTINS_LOADED:
        return

    _BUILTINS_LOADED = True
    for config in BUILTIN_PLATFORMS:
        register_platform_config(config)
