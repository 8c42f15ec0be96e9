class HarnessError(Exception):
    """Base class for failures that abort a scenario.

    ``observed`` holds the last state seen before giving up (URL, match
    counts, visible text); ``step`` is filled in by the runner.
    """

    def __init__(self, message: str, observed: str | None = None):
        super().__init__(message)
        self.message = message
        self.observed = observed
        self.step: str | None = None

    def __str__(self) -> str:
        if self.observed:
            return f"{self.message} (last observed: {self.observed})"
        return self.message


class NavigationError(HarnessError):
    pass


class LocatorNotFoundError(HarnessError):
    pass


class NotInteractableError(HarnessError):
    pass


class WaitTimeoutError(HarnessError, TimeoutError):
    pass


class ScenarioTimeoutError(WaitTimeoutError):
    pass


class ExpectationError(HarnessError, AssertionError):
    pass


class ConfigError(ValueError):
    pass


class SuiteFormatError(ValueError):
    pass
