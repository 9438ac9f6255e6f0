from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx

from mockserver_launcher.config import PollPolicy
from mockserver_launcher.deferred import Deferred
from mockserver_launcher.errors import RetryBudgetExhaustedError
from mockserver_launcher.logging_config import get_logger
from mockserver_launcher.protocols import (
    ConnectionRefused,
    Endpoint,
    HealthResponse,
    PollOutcome,
    ProbeResponse,
    ProbeTimeout,
)

log = get_logger(__name__)

type Predicate = Callable[[PollOutcome], bool]
type ExhaustedFactory = Callable[[PollOutcome, int], BaseException]


# ----------------
# -- Predicates --
# ----------------
def become_reachable(outcome: PollOutcome) -> bool:
    """Any completed HTTP exchange counts, whatever the status code."""
    return isinstance(outcome, ProbeResponse)


def become_unreachable(outcome: PollOutcome) -> bool:
    """A completed exchange, 5xx included, means the port is still bound."""
    return not isinstance(outcome, ProbeResponse)


# -----------
# -- Probe --
# -----------
async def probe(client: httpx.AsyncClient, endpoint: Endpoint, timeout: float) -> PollOutcome:
    try:
        response = await client.request(endpoint.method, endpoint.url, timeout=timeout)
    except httpx.TimeoutException as e:
        return ProbeTimeout(e)
    except httpx.TransportError as e:
        return ConnectionRefused(e)

    return ProbeResponse(
        HealthResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.text,
        ),
    )


def _default_exhausted(outcome: PollOutcome, attempts: int) -> BaseException:
    return RetryBudgetExhaustedError(f"retry budget exhausted after {attempts} attempts", attempts)


async def poll[T](
    client: httpx.AsyncClient,
    endpoint: Endpoint,
    *,
    retries: int,
    predicate: Predicate,
    deferred: Deferred[T],
    result: Callable[[PollOutcome], T],
    policy: PollPolicy | None = None,
    on_exhausted: ExhaustedFactory | None = None,
    waiting_message: str = "Waiting for endpoint",
    verbose: bool = False,
) -> bool:
    """
    Probe `endpoint` until `predicate` accepts an outcome, then resolve
    `deferred` with `result(outcome)`.

    A budget of `retries` allows `retries + 1` attempts, spaced by the
    policy delay. When the budget runs out the deferred is rejected with the
    error built by `on_exhausted`, chained to the last transport error.

    Returns True only when this call resolved the deferred. Stops early,
    returning False, if someone else settles or cancels the deferred.
    """
    policy = policy or PollPolicy()
    on_exhausted = on_exhausted or _default_exhausted
    timeout = policy.attempt_timeout.total_seconds()
    log_wait = log.info if verbose else log.debug

    attempts = 0
    while not deferred.done():
        outcome = await probe(client, endpoint, timeout)
        attempts += 1

        if predicate(outcome):
            return deferred.resolve(result(outcome))

        if retries <= 0:
            error = on_exhausted(outcome, attempts)
            if isinstance(outcome, ConnectionRefused | ProbeTimeout):
                error.__cause__ = outcome.error
            deferred.reject(error)
            return False

        await asyncio.sleep(policy.delay.total_seconds())
        log_wait(waiting_message, url=endpoint.url, retries_remaining=retries)
        retries -= 1

    return False
