import asyncio
from typing import Any, Awaitable, Callable, Tuple

from playwright.async_api import Error as PlaywrightError

from errors import WaitTimeoutError

Check = Callable[[], Awaitable[Tuple[bool, Any]]]


async def poll_until(check: Check, *, timeout_ms: int, interval_ms: int, description: str = "condition") -> Any:
    """Await ``check()`` until it reports done or the deadline passes.

    ``check`` returns ``(done, observed)``. The check always runs at least
    once. Playwright errors raised mid-navigation count as "not yet". On
    timeout a WaitTimeoutError carries the last observed value.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    observed: Any = None
    while True:
        try:
            done, observed = await check()
        except PlaywrightError as e:
            done, observed = False, f"{type(e).__name__}: {e.message}"
        if done:
            return observed
        remaining = deadline - loop.time()
        if remaining <= 0:
            raise WaitTimeoutError(
                f"Timed out after {timeout_ms}ms waiting for {description}",
                observed=None if observed is None else str(observed),
            )
        await asyncio.sleep(min(interval_ms / 1000, remaining))
