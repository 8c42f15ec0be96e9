"""In-memory stand-ins for the slice of the Playwright async API the runner uses,
plus a tiny model of the auth application the built-in suites expect."""

import asyncio
import re
import urllib.parse
from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


def _matches(matcher, actual, exact=False) -> bool:
    if matcher is None:
        return True
    if actual is None:
        return False
    if isinstance(matcher, re.Pattern):
        return bool(matcher.search(actual))
    if exact:
        return matcher == actual
    return matcher.lower() in actual.lower()


class FakeElement:
    def __init__(self, role=None, name=None, text=None, placeholder=None, label=None, css=None, testid=None,
                 visible=True, enabled=True, editable=True, options=(), on_click=None, key=None):
        self.role = role
        self.name = name
        self.text = text if text is not None else (name or "")
        self.placeholder = placeholder
        self.label = label
        self.css = css
        self.testid = testid
        self.visible = visible
        self.enabled = enabled
        self.editable = editable
        self.options = list(options)
        self.on_click = on_click
        self.key = key
        self.value = ""
        self.clicks = 0


class FakeLocator:
    def __init__(self, page, predicate, index=None):
        self.page = page
        self.predicate = predicate
        self.index = index

    def _all(self):
        found = [e for e in self.page.current_elements() if self.predicate(e)]
        if self.index is None:
            return found
        return found[self.index:self.index + 1]

    def _one(self):
        found = self._all()
        if not found:
            raise PlaywrightTimeoutError("waiting for locator")
        if len(found) > 1:
            raise PlaywrightError(f"strict mode violation: resolved to {len(found)} elements")
        return found[0]

    def nth(self, i):
        return FakeLocator(self.page, self.predicate, index=i)

    @property
    def first(self):
        return self.nth(0)

    async def count(self):
        return len(self._all())

    async def is_visible(self):
        found = self._all()
        return bool(found) and found[0].visible

    async def is_enabled(self):
        return self._one().enabled

    async def is_editable(self):
        return self._one().editable

    async def inner_text(self, timeout=None):
        return self._one().text

    async def fill(self, value, timeout=None):
        el = self._one()
        if not el.editable:
            raise PlaywrightError("Element is not editable")
        el.value = value

    async def click(self, timeout=None):
        el = self._one()
        el.clicks += 1
        if el.on_click is not None:
            el.on_click(self.page)

    async def select_option(self, value=None, label=None, timeout=None):
        el = self._one()
        wanted = label if label is not None else value
        for opt in el.options:
            if opt.lower() == (wanted or "").lower():
                el.value = opt
                return [opt]
        raise PlaywrightError(f"No option {wanted!r}")


class FakeContext:
    def __init__(self, app=None, browser=None, **options):
        self.app = app
        self.browser = browser
        self.options = options
        self.cookies = {}
        self.pages = []
        self.closed = False

    async def clear_cookies(self):
        self.cookies.clear()

    async def new_page(self):
        page = FakePage(self.app, context=self)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakePage:
    def __init__(self, app=None, context=None):
        self.app = app
        self.context = context if context is not None else FakeContext(app)
        self.url = "about:blank"
        self.elements = []
        self.local_storage = {}
        self.session_storage = {}
        self.history = []
        self.screenshots = []
        self.fail_navigation = None

    # rendering
    def current_elements(self):
        return self.elements

    def show(self, url, elements):
        self.url = url
        self.elements = list(elements)

    def later(self, delay, fn):
        asyncio.get_running_loop().call_later(delay, fn)

    # navigation
    async def goto(self, url, timeout=None):
        if self.fail_navigation == "timeout":
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded")
        if self.fail_navigation == "error":
            raise PlaywrightError("net::ERR_CONNECTION_REFUSED")
        self.history.append(url)
        if self.app is not None:
            self.app.open(self, url)
        else:
            self.url = url
        return None

    async def reload(self, timeout=None):
        return await self.goto(self.url, timeout=timeout)

    async def evaluate(self, script, *args):
        if "localStorage.clear" in script:
            self.local_storage.clear()
        if "sessionStorage.clear" in script:
            self.session_storage.clear()

    async def screenshot(self, path=None, full_page=False):
        Path(path).write_bytes(b"\x89PNG fake")
        self.screenshots.append(path)
        return b""

    async def wait_for_timeout(self, ms):
        await asyncio.sleep(0)

    # queries
    def get_by_role(self, role, name=None, exact=False):
        return FakeLocator(self, lambda e: e.role == role and _matches(name, e.name, exact))

    def get_by_placeholder(self, text, exact=False):
        return FakeLocator(self, lambda e: _matches(text, e.placeholder, exact) and e.placeholder is not None)

    def get_by_label(self, text, exact=False):
        return FakeLocator(self, lambda e: _matches(text, e.label, exact) and e.label is not None)

    def get_by_text(self, text, exact=False):
        return FakeLocator(self, lambda e: e.role not in ("textbox", "combobox") and bool(e.text)
                           and _matches(text, e.text, exact))

    def get_by_test_id(self, testid):
        return FakeLocator(self, lambda e: e.testid == testid)

    def locator(self, selector):
        if selector == "body":
            return _BodyLocator(self)
        return FakeLocator(self, lambda e: e.css == selector)


class _BodyLocator(FakeLocator):
    def __init__(self, page, index=None):
        super().__init__(page, lambda e: True, index)

    def _all(self):
        body_text = "\n".join(e.text for e in self.page.current_elements() if e.visible and e.text)
        found = [FakeElement(css="body", text=body_text)]
        return found if self.index in (None, 0) else []

    def nth(self, i):
        return _BodyLocator(self.page, index=i)


class FakeBrowser:
    def __init__(self, app=None):
        self.app = app
        self.contexts = []
        self.closed = False

    async def new_context(self, **options):
        ctx = FakeContext(self.app, browser=self, **options)
        self.contexts.append(ctx)
        return ctx

    async def close(self):
        self.closed = True


class FakeAuthApp:
    """Just enough of the auth frontend + backend to drive the built-in suites.

    ``submit_delay`` defers redirects after form submits, the way a real
    network round-trip would.
    """

    ROLES = ("Scrum Master", "Product Owner", "PMO")
    CREATE_ROLES = ("Scrum Master", "Product Owner")

    def __init__(self, base_url="http://app.test", submit_delay=0.0):
        self.base_url = base_url
        self.submit_delay = submit_delay
        self.users = {}
        self.sessions = {}

    # helpers
    def _user_for(self, page):
        token = page.context.cookies.get("session") or page.local_storage.get("token")
        return self.sessions.get(token)

    def _sign_in(self, page, user):
        token = f"t{len(self.sessions) + 1}"
        self.sessions[token] = user
        page.context.cookies["session"] = token
        page.local_storage["token"] = token

    def _after_submit(self, page, fn):
        if self.submit_delay:
            page.later(self.submit_delay, fn)
        else:
            fn()

    def _field(self, page, key):
        for e in page.elements:
            if e.key == key:
                return e.value
        return ""

    def url(self, path):
        return self.base_url + path

    def open(self, page, url):
        parts = urllib.parse.urlsplit(url)
        path = parts.path or "/"
        query = urllib.parse.parse_qs(parts.query)
        user = self._user_for(page)
        if path == "/":
            if user is None:
                return self.open(page, self.url("/login"))
            return page.show(url, self.dashboard(user))
        if path == "/login":
            return page.show(url, self.login_page())
        if path == "/register":
            return page.show(url, self.register_page())
        if path == "/forgot-password":
            return page.show(url, self.forgot_page())
        if path == "/reset-password":
            return page.show(url, self.reset_page(query.get("token", [None])[0]))
        return self.open(page, self.url("/"))

    # pages
    def login_page(self, error=None):
        els = [
            FakeElement(role="heading", name="Sign in to StandupSnap"),
            FakeElement(role="textbox", placeholder="Username or email", key="login-id", text=""),
            FakeElement(role="textbox", placeholder="Password", key="login-password", text=""),
            FakeElement(role="button", name="Sign in", on_click=self.submit_login),
            FakeElement(role="link", name="Create a new account",
                        on_click=lambda page: self.open(page, self.url("/register"))),
            FakeElement(role="link", name="Forgot password?",
                        on_click=lambda page: self.open(page, self.url("/forgot-password"))),
        ]
        if error:
            els.append(FakeElement(role="alert", text=error))
        return els

    def register_page(self, error=None):
        els = [
            FakeElement(role="heading", name="Create your account"),
            FakeElement(role="textbox", label="Full Name", placeholder="Enter your full name", key="name", text=""),
            FakeElement(role="textbox", label="Email", placeholder="Enter your email", key="email", text=""),
            FakeElement(role="textbox", label="Username", placeholder="Choose a username", key="username", text=""),
            FakeElement(role="textbox", label="Password", placeholder="Create a strong password", key="password",
                        text=""),
            FakeElement(role="combobox", label="Role", key="role", options=self.ROLES, text=""),
            FakeElement(role="button", name="Create account", on_click=self.submit_register),
        ]
        if error:
            els.append(FakeElement(role="alert", text=error))
        return els

    def dashboard(self, user):
        first = user["name"].split()[0]
        els = [
            FakeElement(role="heading", name=f"Welcome back, {first}!"),
            FakeElement(role="status", text=user["role"]),
            FakeElement(role="button", name="Logout", on_click=self.logout),
        ]
        if user["role"] in self.CREATE_ROLES:
            els.append(FakeElement(role="heading", name="Quick Actions"))
            for name in ("Create Project", "Create Sprint", "Invite Team"):
                els.append(FakeElement(role="button", name=name))
        return els

    def forgot_page(self, sent=False):
        if sent:
            return [FakeElement(role="heading", name="Check your email")]
        return [
            FakeElement(role="heading", name="Forgot your password?"),
            FakeElement(role="textbox", label="Email address", placeholder="Enter your email", key="forgot-email",
                        text=""),
            FakeElement(role="button", name="Send reset link", on_click=self.submit_forgot),
        ]

    def reset_page(self, token, error=None):
        if not token:
            return [FakeElement(role="alert", text="Invalid or expired reset link")]
        els = [
            FakeElement(role="heading", name="Reset your password"),
            FakeElement(role="textbox", placeholder="New password", key="new", text=""),
            FakeElement(role="textbox", placeholder="Confirm new password", key="confirm", text=""),
            FakeElement(role="button", name="Reset password", on_click=self.submit_reset),
        ]
        if error:
            els.append(FakeElement(role="alert", text=error))
        return els

    # actions
    def submit_login(self, page):
        ident = self._field(page, "login-id")
        password = self._field(page, "login-password")
        user = self.users.get(ident) or next((u for u in self.users.values() if u["email"] == ident), None)

        def done():
            if user is None or user["password"] != password:
                page.show(page.url, self.login_page(error="Invalid credentials"))
                return
            self._sign_in(page, user)
            self.open(page, self.url("/"))

        self._after_submit(page, done)

    def submit_register(self, page):
        user = {
            "name": self._field(page, "name"),
            "email": self._field(page, "email"),
            "username": self._field(page, "username"),
            "password": self._field(page, "password"),
            "role": self._field(page, "role") or "Scrum Master",
        }

        def done():
            if user["username"] in self.users:
                page.show(page.url, self.register_page(error="Username already exists"))
                return
            if any(u["email"] == user["email"] for u in self.users.values()):
                page.show(page.url, self.register_page(error="Email already registered"))
                return
            self.users[user["username"]] = user
            self._sign_in(page, user)
            self.open(page, self.url("/"))

        self._after_submit(page, done)

    def logout(self, page):
        page.context.cookies.pop("session", None)
        page.local_storage.pop("token", None)
        self.open(page, self.url("/login"))

    def submit_forgot(self, page):
        self._after_submit(page, lambda: page.show(page.url, self.forgot_page(sent=True)))

    def submit_reset(self, page):
        new = self._field(page, "new")
        confirm = self._field(page, "confirm")
        token = urllib.parse.parse_qs(urllib.parse.urlsplit(page.url).query).get("token", [""])[0]
        if new != confirm:
            error = "Passwords do not match"
        elif len(new) < 6:
            error = "Password must be at least 6 characters"
        else:
            error = None
        if error:
            page.show(page.url, self.reset_page(token, error=error))
        else:
            self.open(page, self.url("/login"))
