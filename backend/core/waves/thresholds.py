"""
Speed threshold strategies and factory.

The detector asks a strategy for one threshold per segment. 'fixed' returns
the configured speed everywhere; 'adaptive' raises it to the local median
plus k_sigma standard deviations where the session is faster.
"""

import numpy as np
import pandas as pd
import logging
from abc import ABC, abstractmethod
from typing import Dict, Type

from core.waves.params import WaveDetectionParams
from core.waves.window import compute_local_window_stats

logger = logging.getLogger(__name__)


class ThresholdStrategy(ABC):
    """Abstract base class for per-segment speed thresholds."""

    @abstractmethod
    def thresholds(self, segments: pd.DataFrame, params: WaveDetectionParams) -> np.ndarray:
        """
        Compute the detection threshold for every segment.

        Args:
            segments: Segment table
            params: Normalised detection parameters

        Returns:
            Array of thresholds in km/h, one per segment
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the strategy."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Description of the strategy."""
        pass


class FixedThreshold(ThresholdStrategy):
    """Same configured speed for every segment."""

    def thresholds(self, segments: pd.DataFrame, params: WaveDetectionParams) -> np.ndarray:
        return np.full(len(segments), params.threshold_kmh, dtype=float)

    @property
    def name(self) -> str:
        return "Fixed"

    @property
    def description(self) -> str:
        return "Constant speed threshold across the whole session"


class AdaptiveThreshold(ThresholdStrategy):
    """
    max(fixed, local median + k_sigma * local std) per segment.

    The fixed threshold stays a floor, so calm stretches never drop the bar
    below the configured speed.
    """

    def thresholds(self, segments: pd.DataFrame, params: WaveDetectionParams) -> np.ndarray:
        stats = compute_local_window_stats(segments, params.window_seconds)
        local = np.array([s.median + params.k_sigma * s.std for s in stats], dtype=float)
        if local.size == 0:
            return np.full(len(segments), params.threshold_kmh, dtype=float)
        return np.maximum(params.threshold_kmh, local)

    @property
    def name(self) -> str:
        return "Adaptive"

    @property
    def description(self) -> str:
        return "Fixed threshold raised to the trailing median plus k sigma"


class ThresholdFactory:
    """Factory for creating threshold strategies."""

    _strategies: Dict[str, Type[ThresholdStrategy]] = {
        'fixed': FixedThreshold,
        'adaptive': AdaptiveThreshold,
    }

    @classmethod
    def create_strategy(cls, method: str) -> ThresholdStrategy:
        """
        Create a threshold strategy for the specified method.

        Args:
            method: Strategy name ('fixed' or 'adaptive')

        Returns:
            ThresholdStrategy instance
        """
        method_lower = (method or '').lower()

        # Default to fixed for unknown methods
        if method_lower not in cls._strategies:
            logger.warning(f"Unknown threshold method {method!r}, using fixed")
            method_lower = 'fixed'

        return cls._strategies[method_lower]()

    @classmethod
    def get_available_methods(cls) -> Dict[str, str]:
        """Get available threshold methods with descriptions."""
        result = {}
        for method_name, strategy_class in cls._strategies.items():
            strategy = strategy_class()
            result[method_name] = f"{strategy.name}: {strategy.description}"
        return result


def compute_thresholds(segments: pd.DataFrame, params: WaveDetectionParams) -> np.ndarray:
    """
    Convenience function returning per-segment thresholds for the given parameters.

    Args:
        segments: Segment table
        params: Detection parameters (use_adaptive selects the strategy)

    Returns:
        Array of thresholds in km/h
    """
    method = 'adaptive' if params.use_adaptive else 'fixed'
    strategy = ThresholdFactory.create_strategy(method)
    return strategy.thresholds(segments, params)
