"""
Notifications package - Traffic delay notification pipeline

Submodules:
- models: Route query, comparison, delay resolution, message and result types
- errors: Classified failures (retryable vs. terminal)
- traffic_details: Route data fetcher (live traffic vs. free flow)
- delay_resolver: Pure delay computation and threshold decision
- message_generator: Structured customer message from the language model
- dispatcher: One-shot hand-off to the notification transport
- retry: Retry/backoff/timeout policy applied around each stage
- workflow: Stage ordering, conditional branch and per-run journal
"""

from .models import (
    RoutePoint,
    RouteQuery,
    RouteComparison,
    DelayResolution,
    NotificationMessage,
    NotNotified,
    Notified,
    PipelineResult,
)
from .errors import TrafficNotifierError
from .delay_resolver import TrafficDelayResolver, resolve_traffic_delay
from .traffic_details import TrafficDetailsFetcher
from .message_generator import TrafficMessageGenerator
from .dispatcher import NotificationDispatcher
from .retry import RetryPolicy
from .workflow import TrafficNotifierWorkflow, PipelineState

__all__ = [
    "RoutePoint",
    "RouteQuery",
    "RouteComparison",
    "DelayResolution",
    "NotificationMessage",
    "NotNotified",
    "Notified",
    "PipelineResult",
    "TrafficNotifierError",
    "TrafficDelayResolver",
    "resolve_traffic_delay",
    "TrafficDetailsFetcher",
    "TrafficMessageGenerator",
    "NotificationDispatcher",
    "RetryPolicy",
    "TrafficNotifierWorkflow",
    "PipelineState",
]
