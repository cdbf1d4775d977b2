"""
Shared fixtures: a temporary document store and a recording messenger.
"""
import os
import tempfile

import pytest

# Keep the process-wide default store away from the working tree
os.environ.setdefault('DB_PATH', os.path.join(tempfile.mkdtemp(), 'empbot.db'))

from empbot.api.schemas import WebhookEvent
from empbot.core.errors import MessagingError
from empbot.core.router import EventRouter
from empbot.core.store import DocumentStore


class RecordingMessenger:
    """Messenger double that records replies instead of calling LINE."""

    def __init__(self, fail_tokens=()):
        self.sent = []
        self.fail_tokens = set(fail_tokens)

    async def reply(self, reply_token, message):
        if reply_token in self.fail_tokens:
            raise MessagingError(f"reply failed for {reply_token}", status_code=500)
        self.sent.append((reply_token, message))


def text_event(user_id="U1", text="hello", reply_token="rt-1"):
    return {
        "type": "message",
        "replyToken": reply_token,
        "timestamp": 1700000000000,
        "mode": "active",
        "source": {"type": "user", "userId": user_id},
        "message": {"id": "m-1", "type": "text", "text": text},
    }


def make_event(**kwargs) -> WebhookEvent:
    return WebhookEvent.model_validate(text_event(**kwargs))


@pytest.fixture
def store(tmp_path):
    return DocumentStore(db_path=str(tmp_path / "test.db"), project_id="test-project")


@pytest.fixture
def messenger():
    return RecordingMessenger()


@pytest.fixture
def event_router(store, messenger):
    return EventRouter(store=store, messenger=messenger, note_source="TEST")
