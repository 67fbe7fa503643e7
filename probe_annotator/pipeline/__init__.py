"""Run orchestration module.

Provides YAML-based run configuration, structured logging and the
annotate -> verify executor.

Example Usage
-------------
>>> from probe_annotator.pipeline import RunConfig, PipelineExecutor, PipelineLogger
>>> # Load configuration
>>> config = RunConfig("run.yaml")
>>> config.load()
>>> config.parse()
>>> # Setup logging
>>> logger = PipelineLogger("out/logs/")
>>> logger.setup()
>>> # Execute run
>>> exit_code = PipelineExecutor(config, logger).run()
"""

# Configuration
from .config import RunConfig

# Logging
from .logger import (
    ColoredFormatter,
    PipelineLogger,
)

# Execution
from .executor import STAGES, PipelineExecutor

__all__ = [
    # Config
    "RunConfig",
    # Logging
    "ColoredFormatter",
    "PipelineLogger",
    # Execution
    "STAGES",
    "PipelineExecutor",
]
