"""Allow ``python -m glyphsmith``."""

from __future__ import annotations

from glyphsmith.ui.cli.app import main


if __name__ == "__main__":
    main()
