"""Read-only query selectors."""

from leasing_kernel.selectors.base import BaseSelector
from leasing_kernel.selectors.history_selector import HistorySelector
from leasing_kernel.selectors.overlap_selector import OverlapSelector

__all__ = [
    "BaseSelector",
    "HistorySelector",
    "OverlapSelector",
]
