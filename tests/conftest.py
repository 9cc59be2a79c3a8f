import pytest

from paystatus.exceptions import StorageError
from paystatus.storage import MemoryStorage


class FakeClock:
    def __init__(self, now_ms: int = 1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, *, minutes: float = 0, seconds: float = 0, ms: int = 0):
        self.now_ms += int(minutes * 60_000 + seconds * 1000 + ms)


class BrokenStorage(MemoryStorage):
    async def get(self, key):
        raise StorageError("down")

    async def set(self, key, value):
        raise StorageError("down")

    async def delete(self, *keys):
        raise StorageError("down")


class RecordingView:
    def __init__(self):
        self.checks = []
        self.results = []
        self.timeouts = []

    async def checking(self, order_id, attempt, max_attempts):
        self.checks.append((order_id, attempt, max_attempts))

    async def result(self, order_id, data):
        self.results.append((order_id, data))

    async def timeout(self, order_id):
        self.timeouts.append(order_id)


@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def storage():
    return MemoryStorage()

@pytest.fixture
def view():
    return RecordingView()
