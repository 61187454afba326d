"""Test doubles for the remote collaborators and the document store."""

from datetime import UTC, datetime

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=UTC)

GOOD_REPLY = (
    "SCORE: 85/100\n"
    "FEEDBACK: Great pronunciation of the greeting. Try a full sentence next time.\n"
    "STRENGTHS: pronunciation, vocabulary\n"
    "WEAK_AREAS: grammar"
)

WORDS = [
    {"word": "hello", "translation": "שלום", "example": "Hello, how are you?"},
    {"word": "goodbye", "translation": "להתראות", "example": "Goodbye, see you tomorrow!"},
    {"word": "please", "translation": "בבקשה", "example": "Please help me."},
    {"word": "thank you", "translation": "תודה", "example": "Thank you very much!"},
    {"word": "name", "translation": "שם", "example": "My name is Dana."},
]


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeRecognizer:
    """Returns ``text`` after failing the first ``failures`` calls (-1: always fail)."""

    def __init__(self, text: str = "hello my name is Dana", failures: int = 0):
        self.text = text
        self.failures = failures
        self.calls: list[tuple[bytes, str]] = []

    async def recognize(self, audio: bytes, language: str) -> str:
        self.calls.append((audio, language))
        if self.failures < 0 or len(self.calls) <= self.failures:
            raise ConnectionError("recognizer unavailable")
        return self.text


class FakeCompletionModel:
    def __init__(self, reply: str = GOOD_REPLY, failures: int = 0):
        self.reply = reply
        self.failures = failures
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.failures < 0 or len(self.prompts) <= self.failures:
            raise TimeoutError("model timed out")
        return self.reply


class FlakyDocuments:
    """Wraps a document store; ``failures[method]`` calls fail first (-1: always)."""

    def __init__(self, inner, failures: dict[str, int] | None = None):
        self.inner = inner
        self.failures = failures or {}
        self.calls: dict[str, int] = {}

    def _call(self, method: str, *args, **kwargs):
        count = self.calls[method] = self.calls.get(method, 0) + 1
        limit = self.failures.get(method, 0)
        if limit < 0 or count <= limit:
            raise OSError(f"{method} unavailable")
        return getattr(self.inner, method)(*args, **kwargs)

    def get(self, *args, **kwargs):
        return self._call("get", *args, **kwargs)

    def set(self, *args, **kwargs):
        return self._call("set", *args, **kwargs)

    def add(self, *args, **kwargs):
        return self._call("add", *args, **kwargs)

    def update(self, *args, **kwargs):
        return self._call("update", *args, **kwargs)

    def query(self, *args, **kwargs):
        return self._call("query", *args, **kwargs)

