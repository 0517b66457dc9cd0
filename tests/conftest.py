import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

load_dotenv(ROOT / ".env")


class _Session:
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def session_factory():
    return lambda: _Session()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def shipped_row():
    return {
        "order_id": "10000001",
        "status": "SHIPPED",
        "eta": "2025-12-28",
        "carrier": "Yurtiçi Kargo",
        "tracking_number": "123456789",
        "last_update": "2025-12-23T10:30:00Z",
        "issue_flag": None,
        "notes": "Out for delivery",
    }
