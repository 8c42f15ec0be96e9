from dataclasses import dataclass, field

from models import Locator, css, label, placeholder, role, text


@dataclass
class AppContract:
    """What the runner assumes about the application under test.

    Routes, form fields, buttons and feedback patterns. Override any field
    when the frontend labels things differently.
    """

    home_path: str = "/"
    login_path: str = "/login"
    register_path: str = "/register"
    forgot_password_path: str = "/forgot-password"
    reset_password_path: str = "/reset-password"

    # /register
    full_name_field: Locator = field(default_factory=lambda: label("/full name/i"))
    email_field: Locator = field(default_factory=lambda: label("/^email/i"))
    username_field: Locator = field(default_factory=lambda: label("/^username/i"))
    register_password_field: Locator = field(default_factory=lambda: label("/^password/i"))
    role_field: Locator = field(default_factory=lambda: label("/^role/i"))
    register_button: Locator = field(default_factory=lambda: role("button", "/create account/i"))

    # /login
    login_identifier_field: Locator = field(default_factory=lambda: placeholder("/username or email/i"))
    login_password_field: Locator = field(default_factory=lambda: placeholder("/password/i"))
    login_button: Locator = field(default_factory=lambda: role("button", "/sign in/i"))
    login_heading: Locator = field(default_factory=lambda: role("heading", "/sign in/i", first=True))
    register_heading: Locator = field(default_factory=lambda: role("heading", "/create your account/i"))
    create_account_link: Locator = field(default_factory=lambda: role("link", "/create .*account|sign up|register/i"))

    # /forgot-password
    forgot_email_field: Locator = field(default_factory=lambda: placeholder("/email/i"))
    send_reset_button: Locator = field(default_factory=lambda: role("button", "/send reset link/i"))

    # /reset-password
    new_password_field: Locator = field(default_factory=lambda: placeholder("/^new password/i"))
    confirm_password_field: Locator = field(default_factory=lambda: placeholder("/confirm/i"))
    reset_button: Locator = field(default_factory=lambda: role("button", "/reset password/i"))

    # authenticated shell
    logout_button: Locator = field(default_factory=lambda: role("button", "/logout|log out/i", first=True))
    page_text: Locator = field(default_factory=lambda: css("body"))

    # feedback, matched case-insensitively against visible text
    invalid_credentials: str = "invalid|incorrect|failed"
    duplicate_registration: str = "username.*already|already.*registered"
    password_mismatch: str = "passwords do not match"
    password_too_short: str = "at least 6 characters"
    reset_link_sent: str = "check your email"
    invalid_reset_link: str = "invalid.*(reset )?link|link.*(invalid|expired)"
    welcome: str = "welcome back"
    role_indicator: str = "scrum master|product owner|pmo"

    roles: tuple = ("Scrum Master", "Product Owner", "PMO")
    quick_actions: tuple = ("create project", "create sprint", "invite team")

    post_submit_timeout_ms: int = 10000


def feedback(pattern: str) -> Locator:
    """Any visible element whose text matches the pattern, case-insensitively."""
    return text(f"/{pattern}/i", first=True)
