import asyncio
import re
import time
from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from config import Settings, load_settings
from errors import HarnessError, NavigationError, ScenarioTimeoutError
from executor import ScenarioExecutor
from models import Scenario, ScenarioResult, SuiteResult
from session import reset_session

VIEWPORT = {"width": 1366, "height": 900}


def sanitize_for_filename(text: str) -> str:
    """Sanitize text for use in filenames."""
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s]+", "_", text)
    return text.strip("_").lower()[:100]


def get_screenshot_path(screenshots_dir: Path, test_name: str, step_index: int, action_type: str,
                        context: str = "", extension: str = "png") -> Path:
    """Descriptive screenshot path, e.g. test_login_with_email_step07_failure_no_element.png"""
    test_slug = sanitize_for_filename(test_name)
    action_slug = sanitize_for_filename(action_type)
    context_slug = f"_{sanitize_for_filename(context)}" if context else ""
    filename = f"test_{test_slug}_step{step_index:02d}_{action_slug}{context_slug}.{extension}"
    return screenshots_dir / filename


async def run_scenario(browser, scenario: Scenario, base_url: str, settings: Settings, screenshots_dir: Path,
                       verbose: bool = False) -> ScenarioResult:
    """Run one scenario in its own browser context and record the outcome.

    Any failure, including a browser that cannot open a context, is recorded
    against this scenario only.
    """
    context = page = executor = None
    current = {"index": 0, "step": None}

    def on_step(idx, step):
        current["index"] = idx
        current["step"] = step
        if verbose:
            print(f"  [{scenario.name}] step {idx}: {step.describe()}")

    def shot_path(name: str) -> Path:
        return get_screenshot_path(screenshots_dir, scenario.name, current["index"], "screenshot", context=name)

    budget_ms = scenario.timeout_ms or settings.scenario_timeout_ms
    status, error, error_type, observed, screenshot = "passed", "", None, None, ""
    started = time.monotonic()

    try:
        try:
            context = await browser.new_context(viewport=VIEWPORT, base_url=base_url)
            page = await context.new_page()
        except PlaywrightError as e:
            raise NavigationError(f"Browser could not open a page: {e.message}")
        executor = ScenarioExecutor(page, settings, base_url, context=context, verbose=verbose,
                                    screenshot_path=shot_path)
        await reset_session(context, page, verbose=verbose)
        try:
            await asyncio.wait_for(executor.run_steps(scenario.steps, on_step=on_step), timeout=budget_ms / 1000)
        except HarnessError:
            raise
        except asyncio.TimeoutError:
            raise ScenarioTimeoutError(f"Scenario exceeded its {budget_ms}ms budget", observed=page.url)
    except Exception as e:
        status = "failed"
        error = str(e)
        error_type = type(e).__name__
        observed = getattr(e, "observed", None)
        if page is not None:
            screenshot = await capture_failure(page, screenshots_dir, scenario.name, current["index"], e, settings,
                                               verbose)

    url = page.url if page is not None else ""
    duration = time.monotonic() - started
    if context is not None:
        try:
            await context.close()
        except PlaywrightError as e:
            if verbose:
                print(f"⚠️ Could not close browser context: {e.message}")

    step = current["step"]
    if status == "failed" and verbose:
        print(f"✖ Test failed: {scenario.name} — {error} (url={url})")
    return ScenarioResult(
        name=scenario.name,
        status=status,
        error=error,
        error_type=error_type,
        failed_step=step.describe() if (status == "failed" and step is not None) else None,
        failed_step_index=current["index"] if status == "failed" else None,
        url=url,
        observed=observed,
        screenshot=screenshot or (executor.last_screenshot if executor is not None else ""),
        duration_s=round(duration, 3),
        steps=[s.model_dump(exclude_none=True) for s in scenario.steps],
    )


async def capture_failure(page, screenshots_dir: Path, test_name: str, step_index: int, err: Exception,
                          settings: Settings, verbose: bool = False) -> str:
    message = getattr(err, "message", None) or str(err)
    error_context = sanitize_for_filename(message.split("(")[0].strip()[:50]) or "error"
    shot = get_screenshot_path(screenshots_dir, test_name, step_index, "failure", context=error_context)
    try:
        if settings.screenshot_delay_ms > 0:
            await page.wait_for_timeout(settings.screenshot_delay_ms)
        await page.screenshot(path=str(shot), full_page=True)
    except PlaywrightError as e:
        if verbose:
            print(f"⚠️ Could not save failure screenshot: {e.message}")
        return ""
    if verbose:
        print(f"📸 Failure screenshot saved: {shot.name}")
    return str(shot)


async def run_test_suite(base_url: str, scenarios: list[Scenario], run_dir: Path, settings: Settings | None = None,
                         headless: bool = True, verbose: bool = False, concurrency: int = 1) -> SuiteResult:
    settings = settings or load_settings()
    screenshots_dir = Path(run_dir) / "screenshots"
    screenshots_dir.mkdir(parents=True, exist_ok=True)
    gate = asyncio.Semaphore(max(1, concurrency))

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)

        async def guarded(scenario: Scenario) -> ScenarioResult:
            async with gate:
                if verbose:
                    print(f"▶ {scenario.name}")
                result = await run_scenario(browser, scenario, base_url, settings, screenshots_dir, verbose=verbose)
            if result.status == "passed":
                print(f"✓ Passed: {scenario.name}")
            else:
                err_excerpt = result.error if len(result.error) < 300 else (result.error[:297] + "...")
                print(f"✖ Failed: {scenario.name} — {err_excerpt}")
            return result

        try:
            results = await asyncio.gather(*(guarded(s) for s in scenarios))
        finally:
            await browser.close()
    return SuiteResult(tests=list(results))
