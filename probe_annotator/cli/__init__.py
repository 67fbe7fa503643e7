"""Command-line interface for probe-annotator.

Example Usage
-------------
    # From command line:
    probe-annotator --help
    probe-annotator run --config run.yaml
    probe-annotator verify --input out/annotation/ --out out/verification/
    probe-annotator resolve GPL570.annot.gz --platform GPL570
    probe-annotator platforms
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
