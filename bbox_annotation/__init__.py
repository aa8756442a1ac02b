from pathlib import Path

import bbox_annotation.utils.i18n  # noqa:F401

__version__ = (Path(__file__).parent / "VERSION").read_text().strip()
