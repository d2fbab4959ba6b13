"""Alert dispatch — intake, fan-out, aggregation and retry."""

from src.dispatch.aggregator import ResultAggregator, apply_result
from src.dispatch.dispatcher import AlertDispatcher, validate_alert
from src.dispatch.exceptions import DispatchError, InvalidAlertError
from src.dispatch.messages import render_message
from src.dispatch.retry import RetryScheduler

__all__ = [
    "AlertDispatcher",
    "DispatchError",
    "InvalidAlertError",
    "ResultAggregator",
    "RetryScheduler",
    "apply_result",
    "render_message",
    "validate_alert",
]
