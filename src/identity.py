import itertools
import re
import threading
import time

from models import TestIdentity

DEFAULT_PASSWORD = "Test123456!"
DEFAULT_FIRST_NAME = "Test"
DEFAULT_LAST_NAME = "User"
EMAIL_DOMAIN = "example.com"

# Shared by every factory so tokens stay unique across the whole process.
_COUNTER = itertools.count(1)
_LOCK = threading.Lock()


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", value.lower())


class IdentityFactory:
    """Hands out registration credentials that never repeat within a process.

    Uniqueness comes from a millisecond timestamp plus an in-process counter;
    an optional namespace (the run id) keeps concurrent runs against the same
    backend apart.
    """

    def __init__(self, namespace: str | None = None, clock=time.time):
        self.namespace = _slug(namespace) if namespace else ""
        self._clock = clock

    def _token(self) -> str:
        with _LOCK:
            n = next(_COUNTER)
            ts = int(self._clock() * 1000)
        return f"{self.namespace}{ts}{n:03d}"

    def fresh_identity(self, seed_label: str = "test", first_name: str = DEFAULT_FIRST_NAME,
                       last_name: str = DEFAULT_LAST_NAME, password: str = DEFAULT_PASSWORD) -> TestIdentity:
        seed = re.sub(r"[^a-z]+", "", seed_label.lower()) or "test"
        token = self._token()
        return TestIdentity(
            full_name=f"{first_name} {last_name}",
            first_name=first_name,
            last_name=last_name,
            email=f"{seed}{token}@{EMAIL_DOMAIN}",
            username=f"{seed}user{token}",
            password=password,
        )
