from playwright.async_api import Error as PlaywrightError

from errors import NavigationError

_CLEAR_STORAGE_JS = "() => { window.localStorage.clear(); window.sessionStorage.clear(); }"


async def reset_session(context, page, verbose: bool = False) -> None:
    """Drop cookies and client-side storage so the next navigation starts signed out."""
    try:
        await context.clear_cookies()
    except PlaywrightError as e:
        raise NavigationError(f"Browser unavailable while clearing cookies: {e.message}")

    # Storage is only reachable from a real origin; about:blank has none.
    url = page.url or ""
    if not url.startswith(("http://", "https://")):
        if verbose:
            print(f"🧹 Cookies cleared (no origin loaded, storage untouched: {url or 'empty'})")
        return
    try:
        await page.evaluate(_CLEAR_STORAGE_JS)
    except PlaywrightError as e:
        raise NavigationError(f"Unable to clear browser storage on {url}: {e.message}", observed=url)
    if verbose:
        print(f"🧹 Cookies and storage cleared on {url}")
