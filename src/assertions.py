import urllib.parse

from config import Settings
from errors import ExpectationError, WaitTimeoutError
from locators import resolve
from models import Locator, TextPattern
from polling import poll_until


def absolute_url(base_url: str, url: str) -> str:
    if url.startswith(("http://", "https://", "about:")):
        return url
    return base_url.rstrip("/") + "/" + url.lstrip("/")


def same_url(expected: str, actual: str) -> bool:
    """Compare origin, path and query; an empty path counts as "/" and fragments are ignored."""
    e = urllib.parse.urlsplit(expected)
    a = urllib.parse.urlsplit(actual)
    return (
        e.scheme == a.scheme
        and e.netloc == a.netloc
        and (e.path or "/") == (a.path or "/")
        and e.query == a.query
    )


async def visible_texts(loc, limit: int = 5, timeout_ms: int = 1000) -> list[str]:
    texts = []
    count = await loc.count()
    for i in range(count):
        el = loc.nth(i)
        if await el.is_visible():
            texts.append((await el.inner_text(timeout=timeout_ms)).strip())
            if len(texts) >= limit:
                break
    return texts


class AssertionEngine:
    def __init__(self, page, settings: Settings, base_url: str, verbose: bool = False):
        self.page = page
        self.settings = settings
        self.base_url = base_url
        self.verbose = verbose

    def _timeout(self, timeout_ms: int | None) -> int:
        return self.settings.assert_timeout_ms if timeout_ms is None else timeout_ms

    async def _poll(self, check, timeout_ms: int | None, description: str):
        try:
            return await poll_until(
                check,
                timeout_ms=self._timeout(timeout_ms),
                interval_ms=self.settings.poll_interval_ms,
                description=description,
            )
        except WaitTimeoutError as e:
            raise ExpectationError(f"Expected {description}", observed=e.observed) from e

    async def assert_url(self, expected: str, timeout_ms: int | None = None) -> str:
        target = absolute_url(self.base_url, expected)

        async def check():
            cur = self.page.url
            return same_url(target, cur), cur

        cur = await self._poll(check, timeout_ms, f"URL to be {target}")
        if self.verbose:
            print(f"✓ URL is {cur}")
        return cur

    async def assert_visible(self, locator: Locator, timeout_ms: int | None = None) -> None:
        loc = resolve(self.page, locator, apply_first=False)

        async def check():
            count = await loc.count()
            for i in range(count):
                if await loc.nth(i).is_visible():
                    return True, f"{count} match(es), #{i} visible"
            return False, f"{locator.describe()} matched {count} element(s), none visible (url={self.page.url})"

        await self._poll(check, timeout_ms, f"{locator.describe()} to be visible")
        if self.verbose:
            print(f"✓ Visible: {locator.describe()}")

    async def assert_hidden(self, locator: Locator, timeout_ms: int | None = None) -> None:
        loc = resolve(self.page, locator, apply_first=False)
        text_timeout = min(1000, self._timeout(timeout_ms))

        async def check():
            texts = await visible_texts(loc, timeout_ms=text_timeout)
            if texts:
                return False, f"{locator.describe()} still visible: {texts!r} (url={self.page.url})"
            return True, None

        await self._poll(check, timeout_ms, f"{locator.describe()} to be hidden")
        if self.verbose:
            print(f"✓ Hidden: {locator.describe()}")

    async def assert_text_matches(self, locator: Locator, pattern: TextPattern, timeout_ms: int | None = None) -> str:
        loc = resolve(self.page, locator, apply_first=False)
        text_timeout = min(1000, self._timeout(timeout_ms))

        async def check():
            texts = await visible_texts(loc, timeout_ms=text_timeout)
            for t in texts:
                if pattern.matches(t):
                    return True, t
            return False, f"{locator.describe()} visible text {texts!r} (url={self.page.url})"

        matched = await self._poll(check, timeout_ms, f"{locator.describe()} text to match /{pattern.pattern}/")
        if self.verbose:
            print(f"✓ Text {matched!r} matches /{pattern.pattern}/")
        return matched
