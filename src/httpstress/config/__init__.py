from __future__ import annotations

from httpstress.config.models import StressConfig

__all__ = ["StressConfig"]
