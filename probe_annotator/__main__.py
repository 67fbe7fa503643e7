"""Allow ``python -m probe_annotator``."""

from probe_annotator.cli import main

if __name__ == "__main__":
    main()
