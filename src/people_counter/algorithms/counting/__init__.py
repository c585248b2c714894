"""
Counting algorithms for the people crossing counter.

The tracking layer stays independent: it owns identities and positions,
while these components decide when a track has crossed and keep the totals.

- CrossingEvaluator: left/center/right side state machine per track
- CountAggregator: running counters and count-changed notifications
"""

from .aggregator import CountAggregator, CountListener
from .crossing import CrossingEvaluator, classify_side

__all__ = [
    "CountAggregator",
    "CountListener",
    "CrossingEvaluator",
    "classify_side",
]
