from playwright.async_api import Error as PlaywrightError

from models import Locator, as_matcher


def resolve(page, locator: Locator, apply_first: bool = True):
    """Map a Locator onto the matching Playwright query engine."""
    if locator.by == "role":
        kwargs = {}
        if locator.name is not None:
            kwargs["name"] = as_matcher(locator.name)
            kwargs["exact"] = locator.exact
        loc = page.get_by_role(locator.value, **kwargs)
    elif locator.by == "placeholder":
        loc = page.get_by_placeholder(as_matcher(locator.value), exact=locator.exact)
    elif locator.by == "label":
        loc = page.get_by_label(as_matcher(locator.value), exact=locator.exact)
    elif locator.by == "text":
        loc = page.get_by_text(as_matcher(locator.value), exact=locator.exact)
    elif locator.by == "testid":
        loc = page.get_by_test_id(locator.value)
    else:
        loc = page.locator(locator.value)
    if apply_first and locator.first:
        return loc.first
    return loc


async def snapshot(page, locator: Locator, limit: int = 3) -> str:
    """Short description of what a locator currently matches, for diagnostics."""
    loc = resolve(page, locator, apply_first=False)
    count = await loc.count()
    texts = []
    for i in range(min(count, limit)):
        try:
            t = (await loc.nth(i).inner_text(timeout=1000)).strip()
        except PlaywrightError:
            continue
        if t:
            texts.append(t[:80])
    desc = f"{locator.describe()} matched {count} element(s)"
    if texts:
        desc += ": " + "; ".join(repr(t) for t in texts)
    return desc
