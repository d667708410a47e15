"""Shared fixtures for the QC tracker tests."""

import os
import random
import tempfile

# Settings are read at import time; configure the environment before qctrack is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_REQUIRED", "false")
os.environ.setdefault("LOCAL_STORAGE_DIR", tempfile.mkdtemp(prefix="qctrack-storage-"))
os.environ.setdefault("ANALYSIS_SEED", "7")

import pytest  # noqa: E402

from qctrack.config import settings  # noqa: E402
from qctrack.schemas.media import PhotoAttachment, PhotoCreate  # noqa: E402
from qctrack.services.collaboration import CollaborationStore  # noqa: E402
from qctrack.services.container import build_stores  # noqa: E402
from qctrack.services.notifications import NotificationStore  # noqa: E402
from qctrack.storage.local_provider import LocalStorageProvider  # noqa: E402


class FixedRandom(random.Random):
    """Random source that cycles through fixed values."""

    def __init__(self, *values: float) -> None:
        super().__init__(0)
        self._values = list(values) or [0.0]
        self._index = 0

    def random(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


class DownNotifications(NotificationStore):
    """Notification store whose dispatch always fails."""

    def add(self, *args, **kwargs):
        raise RuntimeError("dispatch down")


class DownCollaboration(CollaborationStore):
    """Collaboration store that rejects every comment and activity."""

    def add_comment(self, *args, **kwargs):
        raise RuntimeError("activity log down")

    def log_activity(self, *args, **kwargs):
        raise RuntimeError("activity log down")


def make_photo_create(**overrides) -> PhotoCreate:
    data = {
        "image_url": "https://example.com/photo.jpg",
        "description": "North wall",
        "location": "Zone A - Grid 4",
        "job_number": "J-1001",
        "job_type": "concrete",
    }
    data.update(overrides)
    return PhotoCreate(**data)


def make_photo(**overrides) -> PhotoAttachment:
    return PhotoAttachment(**make_photo_create(**overrides).model_dump())


@pytest.fixture
def notifications():
    return NotificationStore()


@pytest.fixture
def collaboration(notifications):
    return CollaborationStore(notifications=notifications)


@pytest.fixture
def always_detect():
    """Every pattern is included with 99.7% confidence."""
    return FixedRandom(0.99)


@pytest.fixture
def never_detect():
    return FixedRandom(0.0)


@pytest.fixture
def test_settings():
    return settings.model_copy(update={"seed_default_documents": True, "analysis_retry_attempts": 0})


@pytest.fixture
def storage(tmp_path):
    return LocalStorageProvider(base_dir=str(tmp_path / "storage"), base_url="http://testserver")


@pytest.fixture
def stores(test_settings, storage, always_detect):
    return build_stores(test_settings, storage=storage, rng=always_detect)
