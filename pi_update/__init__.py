from __future__ import annotations

from pathlib import Path

PI_UPDATE_ROOT = Path(__file__).parent
__version__ = "0.1.0"
