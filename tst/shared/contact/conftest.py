"""Contact form test fixtures.

Every test gets its own log directory, a recording mailer instead of SMTP
and a clock it can move forward.
"""

import pytest
from fastapi.testclient import TestClient

from src.app import create_app
from src.shared.contact.config import ContactSettings
from src.shared.contact.handler import ContactFormHandler
from src.shared.contact.rate_limit import JsonFileRateLimitStore
from src.shared.contact.submission_log import SubmissionLog

START_TIME = 1_700_000_000.0


class FakeClock:
    def __init__(self, now=START_TIME):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingMailer:
    """Collects messages; recipients in fail_for are reported as undeliverable."""

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, spec):
        if spec.to in self.fail_for:
            return False
        self.sent.append(spec)
        return True


@pytest.fixture
def valid_form():
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane.doe@studiomail.com",
        "phone": "+1 (555) 123-4567",
        "company": "Northlight Pictures",
        "inquiryType": "film-project",
        "subject": "Feature film casting",
        "message": "We would like to discuss a role in our upcoming feature.",
        "privacy": "on",
    }


@pytest.fixture
def settings(tmp_path):
    return ContactSettings(log_dir=tmp_path / "logs", enable_scheduler=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def submission_log(settings):
    log = SubmissionLog(settings)
    yield log
    log.close()


@pytest.fixture
def store(settings):
    return JsonFileRateLimitStore(settings.rate_limit_file)


@pytest.fixture
def handler(settings, store, mailer, submission_log, clock):
    return ContactFormHandler(settings, store, mailer=mailer, submission_log=submission_log, clock=clock)


@pytest.fixture
def client(handler):
    """FastAPI test client wired to the fixture handler."""
    return TestClient(create_app(handler=handler))
