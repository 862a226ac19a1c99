"""
Dispatcher Handlers - Breaker-gated, timed execution of external calls.

This module is the seam between feature code and the monitor. Feature
code hands it an awaitable-producing callable; the dispatcher checks the
service's circuit breaker, times the call, and records the outcome.

Key components:
- ServiceUnavailableError: Raised when a breaker refuses the call
- call_monitored(): One gated, timed attempt
- call_with_retry(): Adds exponential backoff between attempts
- OpenAIGateway: Instrumented chat completion and embedding calls
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from openai import AsyncOpenAI

from vitals.metrics.monitor import PerformanceMonitor

logger = logging.getLogger(__name__)

T = TypeVar("T")

OPENAI_SERVICE = "openai"


class ServiceUnavailableError(Exception):
    """
    A service's circuit breaker is refusing calls.

    Callers should short-circuit and surface a degraded-service message
    or a fallback result.
    """

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Service '{service}' is unavailable (circuit breaker open)")


async def call_monitored(
    monitor: PerformanceMonitor,
    service: str,
    operation: str,
    func: Callable[..., Awaitable[T]],
    *args: Any,
    metadata: dict[str, Any] | None = None,
    **kwargs: Any,
) -> T:
    """
    Execute one external call behind the service's circuit breaker.

    The call is timed with a scoped timer, so it is recorded as a
    success or a failure on every exit path.

    Args:
        monitor: Monitor to record against
        service: Dependency being called
        operation: Action being performed
        func: Coroutine function performing the call
        *args: Positional arguments for func
        metadata: Context attached to the metric
        **kwargs: Keyword arguments for func

    Returns:
        Whatever func returns

    Raises:
        ServiceUnavailableError: If the breaker is open
        Exception: Anything func raises, after it has been recorded
    """
    if not monitor.is_service_available(service):
        logger.warning(f"Skipping {service}.{operation}: circuit breaker open")
        raise ServiceUnavailableError(service)

    with monitor.start_timer(operation, service, metadata):
        return await func(*args, **kwargs)


async def call_with_retry(
    monitor: PerformanceMonitor,
    service: str,
    operation: str,
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 3,
    base_delay: float = 1.0,
    metadata: dict[str, Any] | None = None,
    **kwargs: Any,
) -> T:
    """
    Execute an external call with automatic retry on failure.

    Uses exponential backoff (1s, 2s, 4s with the default base delay)
    between attempts. Every attempt is recorded separately, so repeated
    failures count towards opening the breaker; once it opens, retrying
    stops immediately.

    Args:
        monitor: Monitor to record against
        service: Dependency being called
        operation: Action being performed
        func: Coroutine function performing the call
        *args: Positional arguments for func
        max_retries: Maximum number of attempts (default: 3)
        base_delay: Delay before the first retry in seconds
        metadata: Context attached to each attempt's metric
        **kwargs: Keyword arguments for func

    Returns:
        Result of the first successful attempt

    Raises:
        ServiceUnavailableError: If the breaker is or becomes open
        Exception: The last attempt's error once retries are exhausted
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    last_error: Exception | None = None

    for attempt in range(max_retries):
        attempt_metadata = {**(metadata or {}), "attempt": attempt + 1}
        try:
            return await call_monitored(
                monitor,
                service,
                operation,
                func,
                *args,
                metadata=attempt_metadata,
                **kwargs,
            )
        except ServiceUnavailableError:
            raise
        except Exception as e:
            last_error = e

            if attempt < max_retries - 1:
                wait_time = base_delay * 2**attempt
                logger.warning(
                    f"{service}.{operation} failed (attempt {attempt + 1}/{max_retries}), "
                    f"retrying in {wait_time}s: {e}"
                )
                await asyncio.sleep(wait_time)

    logger.error(f"{service}.{operation} failed after {max_retries} attempts: {last_error}")
    raise last_error


class OpenAIGateway:
    """
    Instrumented OpenAI calls.

    Chat completions are recorded as openai/chat_completion and
    embeddings as openai/text_embedding, so both land on their priced
    cost keys.

    Example:
        gateway = OpenAIGateway(AsyncOpenAI(api_key=key), monitor)
        reply = await gateway.chat_completion(
            [{"role": "user", "content": "Suggest a high-protein lunch"}]
        )
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        monitor: PerformanceMonitor,
        chat_model: str = "gpt-4o-mini",
        embedding_model: str = "text-embedding-3-small",
    ):
        self._client = client
        self._monitor = monitor
        self.chat_model = chat_model
        self.embedding_model = embedding_model

    async def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        **kwargs: Any,
    ) -> str | None:
        """
        Run a chat completion.

        Args:
            messages: Chat messages in OpenAI format
            model: Model override (defaults to chat_model)
            **kwargs: Extra arguments for chat.completions.create

        Returns:
            Content of the first choice

        Raises:
            ServiceUnavailableError: If the OpenAI breaker is open
        """
        model = model or self.chat_model
        if not self._monitor.is_service_available(OPENAI_SERVICE):
            raise ServiceUnavailableError(OPENAI_SERVICE)

        with self._monitor.start_timer(
            "chat_completion", OPENAI_SERVICE, {"model": model}
        ) as timer:
            response = await self._client.chat.completions.create(
                model=model, messages=messages, **kwargs
            )
            usage = response.usage
            timer.complete(
                {
                    "input_tokens": usage.prompt_tokens if usage else 0,
                    "output_tokens": usage.completion_tokens if usage else 0,
                }
            )

        return response.choices[0].message.content

    async def create_embeddings(
        self, texts: list[str], model: str | None = None
    ) -> list[list[float]]:
        """
        Embed a batch of texts.

        Args:
            texts: Inputs to embed
            model: Model override (defaults to embedding_model)

        Returns:
            One vector per input, in input order

        Raises:
            ServiceUnavailableError: If the OpenAI breaker is open
        """
        model = model or self.embedding_model
        response = await call_monitored(
            self._monitor,
            OPENAI_SERVICE,
            "text_embedding",
            self._client.embeddings.create,
            model=model,
            input=texts,
            metadata={"model": model, "count": len(texts)},
        )
        return [item.embedding for item in response.data]
