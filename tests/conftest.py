import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Runtime folders must point somewhere disposable before complaint_intake is imported
_RUNTIME_DIR = tempfile.mkdtemp(prefix="complaint-intake-tests-")
for _key, _sub in (("DATA_DIR", "data"), ("LOG_DIR", "logs"), ("UPLOAD_DIR", "uploads")):
    os.environ[_key] = os.path.join(_RUNTIME_DIR, _sub)
os.environ["GROQ_API_KEY"] = ""
os.environ["COMPLAINT_STORE_BACKEND"] = "json"
os.environ.pop("COMPLAINT_STORE_PATH", None)


class StepClock:
    """Deterministic clock: each call advances by ``step``."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.current = start or datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        value = self.current
        self.current = self.current + self.step
        return value


class FakeAIClient:
    """Stands in for GroqClient; returns a canned reply or raises."""

    provider_name = "Fake AI"

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    path = tmp_path / "logs"
    monkeypatch.setenv("LOG_DIR", str(path))
    return path


@pytest.fixture
def clock():
    return StepClock()
