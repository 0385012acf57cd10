"""Fetch strategies, block detection and the waterfall that ties them together."""

from page_scout.engine.base import FetchOptions, FetchResult, FetchStrategy
from page_scout.engine.detector import BlockCheck, BlockDetector, BlockReason, DetectorThresholds, is_blocked, needs_browser
from page_scout.engine.waterfall import ENGINE_ORDER, EngineResult, EngineStats, EngineWaterfall

__all__ = [
    "BlockCheck",
    "BlockDetector",
    "BlockReason",
    "DetectorThresholds",
    "ENGINE_ORDER",
    "EngineResult",
    "EngineStats",
    "EngineWaterfall",
    "FetchOptions",
    "FetchResult",
    "FetchStrategy",
    "is_blocked",
    "needs_browser",
]
