"""
Dispatcher module: Breaker-gated, monitored execution of external calls.

Public API:
- ServiceUnavailableError: Raised when a circuit breaker refuses a call
- call_monitored: One gated, timed attempt
- call_with_retry: Gated, timed attempts with exponential backoff
- OpenAIGateway: Instrumented OpenAI chat completion and embeddings
"""

from vitals.dispatcher.handlers import (
    OpenAIGateway,
    ServiceUnavailableError,
    call_monitored,
    call_with_retry,
)

__all__ = [
    "ServiceUnavailableError",
    "call_monitored",
    "call_with_retry",
    "OpenAIGateway",
]
