"""Structured logging for annotation runs."""

import logging
import sys
from pathlib import Path

from probe_annotator.io import dated_log_path


class ColoredFormatter(logging.Formatter):
    """Formatter with ANSI colors per level for console output."""

    def __init__(self, fmt: str, datefmt: str, colors: dict):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.colors = colors

    def format(self, record):
        # Work on a copy so the file handler still sees the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.colors.get(record.levelname, self.colors["RESET"])
        record.levelname = f"{color}{record.levelname}{self.colors['RESET']}"
        return super().format(record)


class PipelineLogger:
    """Structured logging for annotation runs.

    Attaches a file handler (detailed) and a colored console handler to the
    package logger, so every ``probe_annotator.*`` module logger reports
    through them. Adds stage and dataset event helpers.

    Parameters
    ----------
    log_dir : str
        Directory for log files
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_name : str, optional
        Logger name. Default: "probe_annotator"

    Attributes
    ----------
    log_dir : Path
        Directory for log files
    log_file : Path
        Path to the run log file
    logger : logging.Logger
        Python logger instance

    Example
    -------
    >>> logger = PipelineLogger("out/logs/", log_level="INFO")
    >>> logger.setup()
    >>> logger.log_stage_start("annotate", "Probe annotation")
    >>> logger.log_stage_complete("annotate", 12.4)
    """

    COLORS = {
        "DEBUG": "\033[0;36m",  # Cyan
        "INFO": "\033[0;34m",  # Blue
        "WARNING": "\033[1;33m",  # Yellow
        "ERROR": "\033[0;31m",  # Red
        "CRITICAL": "\033[1;31m",  # Bold Red
        "RESET": "\033[0m",
    }

    def __init__(
        self,
        log_dir: str,
        log_level: str = "INFO",
        log_name: str = "probe_annotator",
    ):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = dated_log_path(self.log_dir)

        self.log_level = getattr(logging, log_level.upper())
        self.logger = logging.getLogger(log_name)
        self.logger.setLevel(self.log_level)
        self._handlers = []

    def setup(self, console: bool = True) -> None:
        """Configure logging handlers.

        Parameters
        ----------
        console : bool
            Also log to stdout with colors
        """
        self.close()

        file_handler = logging.FileHandler(self.log_file, mode="w")
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(self._get_file_formatter())
        self._handlers.append(file_handler)

        if console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(self.log_level)
            console_handler.setFormatter(self._get_console_formatter())
            self._handlers.append(console_handler)

        for handler in self._handlers:
            self.logger.addHandler(handler)
        # Records do not also reach root handlers
        self.logger.propagate = False

    def close(self) -> None:
        """Detach and close the handlers added by setup()."""
        for handler in self._handlers:
            self.logger.removeHandler(handler)
            handler.close()
        self._handlers = []
        self.logger.propagate = True

    def _get_file_formatter(self) -> logging.Formatter:
        """Get formatter for file logging (detailed, no colors)."""
        return logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def _get_console_formatter(self) -> logging.Formatter:
        """Get formatter for console logging (colored, concise)."""
        return ColoredFormatter(
            fmt="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
            colors=self.COLORS,
        )

    def log_stage_start(self, stage_id: str, stage_name: str) -> None:
        """Log the start of a run stage."""
        separator = "=" * 80
        self.logger.info(separator)
        self.logger.info(f"Starting stage {stage_id}: {stage_name}")
        self.logger.info(separator)

    def log_stage_complete(self, stage_id: str, duration: float) -> None:
        """Log successful completion of a stage.

        Parameters
        ----------
        stage_id : str
            Stage identifier
        duration : float
            Execution time in seconds
        """
        duration_str = self.format_duration(duration)
        self.logger.info(f"Stage {stage_id} completed in {duration_str}")

    def log_stage_error(self, stage_id: str, error: str) -> None:
        """Log a stage error."""
        self.logger.error(f"Stage {stage_id} failed: {error}")

    def log_dataset_failure(self, dataset_id: str, stage: str, error: str) -> None:
        """Log a dataset skipped during a run."""
        self.logger.error(f"  - {dataset_id} [{stage}]: {error}")

    def log_info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def log_warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def log_error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def log_debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)

    @staticmethod
    def format_duration(seconds: float) -> str:
        """Format duration in seconds to human-readable string.

        Parameters
        ----------
        seconds : float
            Duration in seconds

        Returns
        -------
        str
            Formatted string (e.g., "45.2s", "1m 23s", "2h 15m")
        """
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            mins = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{mins}m {secs}s"
        else:
            hours = int(seconds // 3600)
            mins = int((seconds % 3600) // 60)
            return f"{hours}h {mins}m"

