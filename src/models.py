import re
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

_REGEX_LITERAL = re.compile(r"^/(?P<body>.+)/(?P<flags>[imsx]*)$", re.S)
_FLAG_BITS = {"i": re.I, "m": re.M, "s": re.S, "x": re.X}


def compile_pattern(value: str, ignore_case: bool = False) -> re.Pattern:
    """Compile ``/body/flags`` literals; anything else is matched literally."""
    m = _REGEX_LITERAL.match(value)
    flags = re.I if ignore_case else 0
    if m:
        for ch in m.group("flags"):
            flags |= _FLAG_BITS[ch]
        return re.compile(m.group("body"), flags)
    return re.compile(re.escape(value), flags)


def as_matcher(value: str) -> Union[str, re.Pattern]:
    """Playwright accepts either plain text or a compiled pattern."""
    if _REGEX_LITERAL.match(value):
        return compile_pattern(value)
    return value


class Locator(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    by: Literal["role", "placeholder", "label", "text", "css", "testid"]
    value: str
    name: Optional[str] = Field(None, description="Accessible name (role locators only)")
    exact: bool = False
    first: bool = Field(False, description="Take the first match instead of requiring exactly one")

    def describe(self) -> str:
        if self.by == "role":
            return f"role={self.value}" + (f" name={self.name}" if self.name else "")
        return f"{self.by}={self.value}"


def role(role_name: str, name: Optional[str] = None, **kw) -> Locator:
    return Locator(by="role", value=role_name, name=name, **kw)


def placeholder(text: str, **kw) -> Locator:
    return Locator(by="placeholder", value=text, **kw)


def label(text: str, **kw) -> Locator:
    return Locator(by="label", value=text, **kw)


def text(pattern: str, **kw) -> Locator:
    return Locator(by="text", value=pattern, **kw)


def css(selector: str, **kw) -> Locator:
    return Locator(by="css", value=selector, **kw)


class TextPattern(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    pattern: str
    ignore_case: bool = True

    def compiled(self) -> re.Pattern:
        m = _REGEX_LITERAL.match(self.pattern)
        if m:
            return compile_pattern(self.pattern, self.ignore_case)
        return re.compile(self.pattern, re.I if self.ignore_case else 0)

    def matches(self, value: str) -> bool:
        return bool(self.compiled().search(value or ""))


class _StepBase(BaseModel):
    # YAML reads `value: 123456` as an int
    model_config = ConfigDict(coerce_numbers_to_str=True)

    note: Optional[str] = None

    def describe(self) -> str:
        parts = [self.action]
        for key in ("url", "expected"):
            if getattr(self, key, None):
                parts.append(str(getattr(self, key)))
        loc = getattr(self, "locator", None)
        if loc is not None:
            parts.append(loc.describe())
        pattern = getattr(self, "pattern", None)
        if pattern is not None:
            parts.append(f"~ /{pattern.pattern}/")
        return " ".join(parts)


class Navigate(_StepBase):
    action: Literal["navigate"] = "navigate"
    url: str
    timeout_ms: Optional[int] = None


class Reload(_StepBase):
    action: Literal["reload"] = "reload"
    timeout_ms: Optional[int] = None


class Fill(_StepBase):
    action: Literal["fill"] = "fill"
    locator: Locator
    value: str

    def describe(self) -> str:
        return f"fill {self.locator.describe()}"


class Click(_StepBase):
    action: Literal["click"] = "click"
    locator: Locator


class Select(_StepBase):
    action: Literal["select"] = "select"
    locator: Locator
    option: str


class WaitForURL(_StepBase):
    action: Literal["wait_for_url"] = "wait_for_url"
    expected: str
    timeout_ms: Optional[int] = None


class AssertURL(_StepBase):
    action: Literal["assert_url"] = "assert_url"
    expected: str
    timeout_ms: Optional[int] = None


class AssertVisible(_StepBase):
    action: Literal["assert_visible"] = "assert_visible"
    locator: Locator
    timeout_ms: Optional[int] = None


class AssertHidden(_StepBase):
    action: Literal["assert_hidden"] = "assert_hidden"
    locator: Locator
    timeout_ms: Optional[int] = None


class AssertText(_StepBase):
    action: Literal["assert_text"] = "assert_text"
    locator: Locator
    pattern: TextPattern
    timeout_ms: Optional[int] = None

    @field_validator("pattern", mode="before")
    @classmethod
    def _pattern_from_str(cls, v: Any) -> Any:
        if isinstance(v, (str, int, float)) and not isinstance(v, bool):
            return {"pattern": str(v)}
        return v


class ResetSession(_StepBase):
    action: Literal["reset_session"] = "reset_session"


class Screenshot(_StepBase):
    action: Literal["screenshot"] = "screenshot"
    name: Optional[str] = None


Step = Annotated[
    Union[
        Navigate, Reload, Fill, Click, Select, WaitForURL, AssertURL,
        AssertVisible, AssertHidden, AssertText, ResetSession, Screenshot,
    ],
    Field(discriminator="action"),
]


class Scenario(BaseModel):
    name: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    steps: List[Step]
    timeout_ms: Optional[int] = None


class TestIdentity(BaseModel):
    __test__ = False  # not a pytest class

    full_name: str
    first_name: str
    last_name: str
    email: str
    username: str
    password: str


class ScenarioResult(BaseModel):
    name: str
    status: Literal["passed", "failed"]
    error: str = ""
    error_type: Optional[str] = None
    failed_step: Optional[str] = None
    failed_step_index: Optional[int] = None
    url: str = ""
    observed: Optional[str] = None
    screenshot: str = ""
    duration_s: float = 0.0
    steps: List[Dict[str, Any]] = Field(default_factory=list)


class SuiteResult(BaseModel):
    tests: List[ScenarioResult] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.tests)

    @property
    def passed(self) -> int:
        return sum(1 for t in self.tests if t.status == "passed")

    @property
    def failed(self) -> int:
        return sum(1 for t in self.tests if t.status == "failed")

    def failures(self) -> List[ScenarioResult]:
        return [t for t in self.tests if t.status == "failed"]

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["summary"] = {"total": self.total, "passed": self.passed, "failed": self.failed}
        return data
