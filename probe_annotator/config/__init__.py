"""Centralized configuration for probe-annotator.

This module provides the platform registry used by the annotation resolver.

Example
-------
>>> from probe_annotator.config import get_platform_config, list_available_platforms
>>>
>>> print(list_available_platforms())
['GPL10558', 'GPL570', 'GPL6244', 'GPL6480', 'GPL96']
>>>
>>> config = get_platform_config("HG-U133A")
>>> print(config.platform_id)
'GPL96'
"""

from .platform import (
    PlatformConfig,
    find_platform_config,
    get_platform_config,
    list_available_platforms,
    list_platform_aliases,
    load_platform_configs,
    register_platform_config,
)

__all__ = [
    "PlatformConfig",
    "find_platform_config",
    "get_platform_config",
    "list_available_platforms",
    "list_platform_aliases",
    "load_platform_configs",
    "register_platform_config",
]
