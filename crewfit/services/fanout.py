import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from crewfit.errors import NotFoundError, PermissionDeniedError, TransientFetchError

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")


@dataclass
class Outcome(Generic[K, T]):
    """Result of one fanned-out fetch: either a value or the error that replaced it."""

    key: K
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def fetch_with_retry(
    fetch: Callable[[], Awaitable[T]],
    *,
    description: str,
    timeout: float,
    retries: int,
    retry_delay: float,
) -> T:
    """Run one collaborator call with a timeout, retrying transient failures.

    Permission and not-found errors are not retried. Anything else that
    escapes the collaborator is surfaced as a TransientFetchError once the
    retries are spent. Back-off is linear: ``retry_delay * attempt``.
    """
    last_error: TransientFetchError | None = None
    for attempt in range(retries + 1):
        try:
            return await asyncio.wait_for(fetch(), timeout)
        except (PermissionDeniedError, NotFoundError):
            raise
        except asyncio.TimeoutError as exc:
            last_error = TransientFetchError(f"{description} timed out after {timeout}s")
            last_error.__cause__ = exc
        except TransientFetchError as exc:
            last_error = exc
        except Exception as exc:
            last_error = TransientFetchError(f"{description} failed: {exc}")
            last_error.__cause__ = exc

        if attempt < retries:
            logger.warning(
                "%s attempt %d failed: %s", description, attempt + 1, last_error
            )
            await asyncio.sleep(retry_delay * (attempt + 1))

    raise last_error


async def gather_outcomes(
    keys: Iterable[K], fetch: Callable[[K], Awaitable[T]]
) -> list[Outcome[K, T]]:
    """Run ``fetch`` for every key concurrently; one failure never cancels the rest.

    Outcomes come back in key order.
    """
    keys = list(keys)
    results = await asyncio.gather(*(fetch(k) for k in keys), return_exceptions=True)

    outcomes: list[Outcome[K, T]] = []
    for key, result in zip(keys, results):
        if isinstance(result, Exception):
            outcomes.append(Outcome(key=key, error=result))
        elif isinstance(result, BaseException):
            # Cancellation and interpreter shutdown are not per-item failures
            raise result
        else:
            outcomes.append(Outcome(key=key, value=result))
    return outcomes
