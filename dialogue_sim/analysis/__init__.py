"""Analysis module - conversation metrics and belief accuracy."""

from .metrics import ConversationMetrics, MetricsCollector, belief_accuracy

__all__ = [
    "ConversationMetrics",
    "MetricsCollector",
    "belief_accuracy",
]
