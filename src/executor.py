from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from assertions import AssertionEngine, absolute_url, same_url
from config import Settings
from errors import (
    LocatorNotFoundError,
    NavigationError,
    NotInteractableError,
    WaitTimeoutError,
)
from locators import resolve, snapshot
from models import (
    AssertHidden,
    AssertText,
    AssertURL,
    AssertVisible,
    Click,
    Fill,
    Locator,
    Navigate,
    Reload,
    ResetSession,
    Screenshot,
    Select,
    WaitForURL,
)
from polling import poll_until
from session import reset_session


class ScenarioExecutor:
    """Drives one page through a scenario's steps, strictly in order."""

    def __init__(self, page, settings: Settings, base_url: str, context=None, verbose: bool = False,
                 screenshot_path=None):
        self.page = page
        self.context = context if context is not None else page.context
        self.settings = settings
        self.base_url = base_url
        self.verbose = verbose
        self.assertions = AssertionEngine(page, settings, base_url, verbose=verbose)
        # Callable(name) -> Path for screenshot steps; set by the runner.
        self.screenshot_path = screenshot_path
        self.last_screenshot = ""

    async def navigate(self, url: str, timeout_ms: int | None = None) -> None:
        target = absolute_url(self.base_url, url)
        timeout_ms = self.settings.nav_timeout_ms if timeout_ms is None else timeout_ms
        if self.verbose:
            print(f"→ Navigating to {target}")
        try:
            await self.page.goto(target, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            raise NavigationError(f"Page did not load within {timeout_ms}ms: {target}", observed=self.page.url)
        except PlaywrightError as e:
            raise NavigationError(f"Navigation to {target} failed: {e.message}", observed=self.page.url)

    async def reload(self, timeout_ms: int | None = None) -> None:
        timeout_ms = self.settings.nav_timeout_ms if timeout_ms is None else timeout_ms
        if self.verbose:
            print(f"→ Reloading {self.page.url}")
        try:
            await self.page.reload(timeout=timeout_ms)
        except PlaywrightTimeoutError:
            raise NavigationError(f"Reload did not finish within {timeout_ms}ms", observed=self.page.url)
        except PlaywrightError as e:
            raise NavigationError(f"Reload failed: {e.message}", observed=self.page.url)

    async def _usable(self, locator: Locator, editable: bool = False):
        """Wait until the locator resolves to exactly one visible, enabled element and return it."""
        loc = resolve(self.page, locator, apply_first=False)
        last_count = 0
        problem = None

        async def check():
            nonlocal last_count, problem
            problem = None
            last_count = await loc.count()
            if not (last_count == 1 or (last_count > 1 and locator.first)):
                return False, last_count
            el = loc.first if locator.first else loc
            if not await el.is_visible():
                problem = "is not visible"
            elif not await el.is_enabled():
                problem = "is disabled"
            elif editable and not await el.is_editable():
                problem = "is read-only"
            return problem is None, problem or last_count

        try:
            await poll_until(
                check,
                timeout_ms=self.settings.action_timeout_ms,
                interval_ms=self.settings.poll_interval_ms,
                description=f"{locator.describe()} to be usable",
            )
        except WaitTimeoutError as e:
            if problem is not None:
                raise NotInteractableError(f"{locator.describe()} {problem}", observed=self.page.url) from e
            observed = await snapshot(self.page, locator)
            if last_count > 1:
                raise LocatorNotFoundError(f"Ambiguous locator {locator.describe()}", observed=observed) from e
            raise LocatorNotFoundError(f"No element for {locator.describe()}", observed=observed) from e
        return loc.first if locator.first else loc

    async def fill(self, locator: Locator, value: str) -> None:
        el = await self._usable(locator, editable=True)
        try:
            await el.fill(value, timeout=self.settings.action_timeout_ms)
        except PlaywrightError as e:
            raise NotInteractableError(f"Unable to fill {locator.describe()}: {e.message}", observed=self.page.url)
        if self.verbose:
            print(f"→ Filled {locator.describe()}")

    async def click(self, locator: Locator) -> None:
        el = await self._usable(locator)
        try:
            await el.click(timeout=self.settings.action_timeout_ms)
        except PlaywrightError as e:
            raise NotInteractableError(f"Unable to click {locator.describe()}: {e.message}", observed=self.page.url)
        if self.verbose:
            print(f"→ Clicked {locator.describe()}")

    async def select(self, locator: Locator, option: str) -> None:
        el = await self._usable(locator)
        try:
            await el.select_option(label=option, timeout=self.settings.action_timeout_ms)
        except PlaywrightError:
            # Fall back to the option value when no label matches.
            try:
                await el.select_option(value=option, timeout=self.settings.action_timeout_ms)
            except PlaywrightError as e:
                raise NotInteractableError(f"Unable to select {option!r} in {locator.describe()}: {e.message}",
                                           observed=self.page.url)
        if self.verbose:
            print(f"→ Selected {option!r} in {locator.describe()}")

    async def wait_for_url(self, expected: str, timeout_ms: int | None = None) -> str:
        target = absolute_url(self.base_url, expected)

        async def check():
            cur = self.page.url
            return same_url(target, cur), cur

        cur = await poll_until(
            check,
            timeout_ms=self.settings.submit_timeout_ms if timeout_ms is None else timeout_ms,
            interval_ms=self.settings.poll_interval_ms,
            description=f"URL {target}",
        )
        if self.verbose:
            print(f"→ Arrived at {cur}")
        return cur

    async def screenshot(self, name: str | None = None) -> str:
        if self.screenshot_path is None:
            return ""
        shot: Path = self.screenshot_path(name or "screenshot")
        await self.page.screenshot(path=str(shot), full_page=True)
        self.last_screenshot = str(shot)
        if self.verbose:
            print(f"📸 Screenshot saved: {shot.name}")
        return self.last_screenshot

    async def run_step(self, step) -> None:
        if isinstance(step, Navigate):
            await self.navigate(step.url, step.timeout_ms)
        elif isinstance(step, Reload):
            await self.reload(step.timeout_ms)
        elif isinstance(step, Fill):
            await self.fill(step.locator, step.value)
        elif isinstance(step, Click):
            await self.click(step.locator)
        elif isinstance(step, Select):
            await self.select(step.locator, step.option)
        elif isinstance(step, WaitForURL):
            await self.wait_for_url(step.expected, step.timeout_ms)
        elif isinstance(step, AssertURL):
            await self.assertions.assert_url(step.expected, step.timeout_ms)
        elif isinstance(step, AssertVisible):
            await self.assertions.assert_visible(step.locator, step.timeout_ms)
        elif isinstance(step, AssertHidden):
            await self.assertions.assert_hidden(step.locator, step.timeout_ms)
        elif isinstance(step, AssertText):
            await self.assertions.assert_text_matches(step.locator, step.pattern, step.timeout_ms)
        elif isinstance(step, ResetSession):
            await reset_session(self.context, self.page, verbose=self.verbose)
        elif isinstance(step, Screenshot):
            await self.screenshot(step.name)
        else:
            raise TypeError(f"Unknown step type: {type(step).__name__}")

    async def run_steps(self, steps, on_step=None) -> None:
        for idx, step in enumerate(steps, start=1):
            if on_step is not None:
                on_step(idx, step)
            await self.run_step(step)
