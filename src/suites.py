"""Built-in scenarios for the authentication, RBAC and protected-route flows.

Each builder takes an IdentityFactory so every scenario registers its own
never-before-seen user; the backend's user store is shared and never reset.
"""

from app_contract import AppContract, feedback
from identity import IdentityFactory
from models import (
    AssertHidden,
    AssertText,
    AssertURL,
    AssertVisible,
    Click,
    Fill,
    Navigate,
    Reload,
    Scenario,
    Select,
    TestIdentity,
    WaitForURL,
    role,
)


def register_steps(c: AppContract, ident: TestIdentity, role_label: str | None = None, expect_home: bool = True) -> list:
    steps = [
        Navigate(url=c.register_path),
        Fill(locator=c.full_name_field, value=ident.full_name),
        Fill(locator=c.email_field, value=ident.email),
        Fill(locator=c.username_field, value=ident.username),
        Fill(locator=c.register_password_field, value=ident.password),
    ]
    if role_label:
        steps.append(Select(locator=c.role_field, option=role_label))
    steps.append(Click(locator=c.register_button))
    if expect_home:
        steps.append(WaitForURL(expected=c.home_path, timeout_ms=c.post_submit_timeout_ms))
    return steps


def login_steps(c: AppContract, identifier: str, password: str, expect_home: bool = True) -> list:
    steps = [
        Navigate(url=c.login_path),
        Fill(locator=c.login_identifier_field, value=identifier),
        Fill(locator=c.login_password_field, value=password),
        Click(locator=c.login_button),
    ]
    if expect_home:
        steps.append(WaitForURL(expected=c.home_path, timeout_ms=c.post_submit_timeout_ms))
    return steps


def logout_steps(c: AppContract) -> list:
    return [
        Click(locator=c.logout_button),
        WaitForURL(expected=c.login_path, timeout_ms=c.post_submit_timeout_ms),
    ]


def expect_text(c: AppContract, pattern: str, timeout_ms: int | None = None) -> AssertText:
    return AssertText(locator=c.page_text, pattern={"pattern": pattern}, timeout_ms=timeout_ms)


def build_auth_suite(identities: IdentityFactory, c: AppContract | None = None) -> list[Scenario]:
    c = c or AppContract()
    scenarios = []

    scenarios.append(Scenario(
        name="Unauthenticated root redirects to login",
        tags=["auth"],
        steps=[Navigate(url=c.home_path), AssertURL(expected=c.login_path)],
    ))

    scenarios.append(Scenario(
        name="Login form is shown",
        tags=["auth"],
        steps=[
            Navigate(url=c.login_path),
            AssertVisible(locator=c.login_heading),
            AssertVisible(locator=c.login_identifier_field),
            AssertVisible(locator=c.login_password_field),
            AssertVisible(locator=c.login_button),
        ],
    ))

    scenarios.append(Scenario(
        name="Login page links to registration",
        tags=["auth"],
        steps=[
            Navigate(url=c.login_path),
            Click(locator=c.create_account_link),
            AssertURL(expected=c.register_path),
            AssertVisible(locator=c.register_heading),
        ],
    ))

    ident = identities.fresh_identity("test")
    scenarios.append(Scenario(
        name="Register a new user",
        description="A fresh identity lands on the dashboard with a welcome message.",
        tags=["auth", "register"],
        steps=register_steps(c, ident) + [expect_text(c, c.welcome)],
    ))

    ident = identities.fresh_identity("dup")
    scenarios.append(Scenario(
        name="Duplicate username is rejected",
        tags=["auth", "register"],
        steps=register_steps(c, ident) + logout_steps(c)
        + register_steps(c, ident, expect_home=False)
        + [expect_text(c, c.duplicate_registration)],
    ))

    ident = identities.fresh_identity("login")
    scenarios.append(Scenario(
        name="Login with username",
        tags=["auth", "login"],
        steps=register_steps(c, ident) + logout_steps(c)
        + login_steps(c, ident.username, ident.password)
        + [expect_text(c, c.welcome)],
    ))

    ident = identities.fresh_identity("email")
    scenarios.append(Scenario(
        name="Login with email",
        tags=["auth", "login"],
        steps=register_steps(c, ident) + logout_steps(c)
        + login_steps(c, ident.email, ident.password)
        + [AssertURL(expected=c.home_path)],
    ))

    scenarios.append(Scenario(
        name="Invalid credentials are rejected",
        tags=["auth", "login"],
        steps=login_steps(c, "wrong@example.com", "wrongpassword", expect_home=False) + [
            expect_text(c, c.invalid_credentials, timeout_ms=c.post_submit_timeout_ms),
            AssertURL(expected=c.login_path),
        ],
    ))

    ident = identities.fresh_identity("logout")
    scenarios.append(Scenario(
        name="Logout ends the session",
        tags=["auth", "logout"],
        steps=register_steps(c, ident) + logout_steps(c) + [
            Navigate(url=c.home_path),
            AssertURL(expected=c.login_path),
        ],
    ))

    ident = identities.fresh_identity("refresh")
    scenarios.append(Scenario(
        name="Session survives a page refresh",
        tags=["auth"],
        steps=register_steps(c, ident) + [
            Reload(),
            AssertURL(expected=c.home_path),
            expect_text(c, c.welcome),
        ],
    ))

    ident = identities.fresh_identity("forgot")
    scenarios.append(Scenario(
        name="Forgot password sends a reset link",
        tags=["auth", "password-reset"],
        steps=[
            Navigate(url=c.forgot_password_path),
            Fill(locator=c.forgot_email_field, value=ident.email),
            Click(locator=c.send_reset_button),
            expect_text(c, c.reset_link_sent, timeout_ms=c.post_submit_timeout_ms),
        ],
    ))

    reset_url = f"{c.reset_password_path}?token=test-reset-token"
    scenarios.append(Scenario(
        name="Reset password rejects mismatched confirmation",
        tags=["auth", "password-reset"],
        steps=[
            Navigate(url=reset_url),
            Fill(locator=c.new_password_field, value="Test123456!"),
            Fill(locator=c.confirm_password_field, value="Different123!"),
            Click(locator=c.reset_button),
            expect_text(c, c.password_mismatch),
        ],
    ))

    scenarios.append(Scenario(
        name="Reset password rejects short passwords",
        tags=["auth", "password-reset"],
        steps=[
            Navigate(url=reset_url),
            Fill(locator=c.new_password_field, value="abc"),
            Fill(locator=c.confirm_password_field, value="abc"),
            Click(locator=c.reset_button),
            expect_text(c, c.password_too_short),
        ],
    ))

    scenarios.append(Scenario(
        name="Reset password without token shows invalid link",
        tags=["auth", "password-reset"],
        steps=[
            Navigate(url=c.reset_password_path),
            expect_text(c, c.invalid_reset_link),
        ],
    ))
    return scenarios


def build_rbac_suite(identities: IdentityFactory, c: AppContract | None = None) -> list[Scenario]:
    c = c or AppContract()
    scenarios = []

    ident = identities.fresh_identity("scrummaster", first_name="Scrum", last_name="Master")
    scenarios.append(Scenario(
        name="Role badge is shown on the dashboard",
        tags=["rbac"],
        steps=register_steps(c, ident) + [
            expect_text(c, c.role_indicator),
            expect_text(c, c.welcome),
        ],
    ))

    for role_label in c.roles:
        ident = identities.fresh_identity(role_label, first_name="Jordan", last_name="Tester")
        scenarios.append(Scenario(
            name=f"Registering as {role_label} shows that role",
            tags=["rbac", "register"],
            steps=register_steps(c, ident, role_label=role_label) + [
                expect_text(c, role_label.lower()),
            ],
        ))

    ident = identities.fresh_identity("creator", first_name="Creator", last_name="User")
    scenarios.append(Scenario(
        name="Quick actions are shown to users with create permissions",
        tags=["rbac"],
        steps=register_steps(c, ident, role_label=c.roles[0]) + [
            expect_text(c, "quick actions"),
        ] + [AssertVisible(locator=role("button", f"/{name}/i")) for name in c.quick_actions],
    ))

    ident = identities.fresh_identity("viewonly", first_name="Viewer", last_name="User")
    scenarios.append(Scenario(
        name="View-only role does not get create actions",
        tags=["rbac"],
        steps=register_steps(c, ident, role_label="PMO") + [
            expect_text(c, c.welcome),
        ] + [AssertHidden(locator=role("button", f"/{name}/i")) for name in c.quick_actions[:2]],
    ))

    ident = identities.fresh_identity("rolelogout", first_name="Role", last_name="Check")
    scenarios.append(Scenario(
        name="Role is shown and access is revoked after logout",
        tags=["rbac", "logout"],
        steps=register_steps(c, ident) + [AssertVisible(locator=feedback(c.role_indicator))]
        + logout_steps(c) + [
            Navigate(url=c.home_path),
            AssertURL(expected=c.login_path),
        ],
    ))
    return scenarios


def build_protected_routes_suite(identities: IdentityFactory, c: AppContract | None = None) -> list[Scenario]:
    c = c or AppContract()
    ident = identities.fresh_identity("routes")
    return [
        Scenario(
            name="Dashboard requires authentication",
            tags=["routes"],
            steps=[Navigate(url=c.home_path), AssertURL(expected=c.login_path)],
        ),
        Scenario(
            name="Dashboard is reachable once authenticated",
            tags=["routes"],
            steps=register_steps(c, ident) + [expect_text(c, c.welcome)],
        ),
        Scenario(
            name="Login and register are public",
            tags=["routes"],
            steps=[
                Navigate(url=c.login_path),
                AssertURL(expected=c.login_path),
                AssertVisible(locator=c.login_heading),
                Navigate(url=c.register_path),
                AssertURL(expected=c.register_path),
                AssertVisible(locator=c.register_heading),
            ],
        ),
        Scenario(
            name="Unknown routes fall back to login when signed out",
            tags=["routes"],
            steps=[Navigate(url="/nonexistent-route"), AssertURL(expected=c.login_path)],
        ),
    ]


SUITES = {
    "auth": build_auth_suite,
    "rbac": build_rbac_suite,
    "routes": build_protected_routes_suite,
}


def builtin_suite(name: str, identities: IdentityFactory, contract: AppContract | None = None) -> list[Scenario]:
    if name == "all":
        scenarios = []
        for builder in SUITES.values():
            scenarios.extend(builder(identities, contract))
        return scenarios
    try:
        builder = SUITES[name]
    except KeyError:
        raise ValueError(f"Unknown suite {name!r}; choose from {', '.join(list(SUITES) + ['all'])}")
    return builder(identities, contract)
