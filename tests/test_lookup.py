from unittest.mock import AsyncMock

import anyio
import pytest
from sqlalchemy.exc import DBAPIError, NoResultFound, OperationalError, ProgrammingError

from common.orders import lookup
from common.orders.lookup import OrderResolver, classify_failure, lookup_keys


class _FakeRepo:
    def __init__(self, *effects):
        self.get_order = AsyncMock(side_effect=list(effects))
        self.tables: list[str] = []


def _install_repo(monkeypatch, repo: _FakeRepo):
    def factory(session, table="orders"):
        repo.tables.append(table)
        return repo

    monkeypatch.setattr(lookup, "OrderRepository", factory)


def _resolver(session_factory, sleep, **kwargs) -> OrderResolver:
    params = {"max_attempts": 3, "backoff_seconds": 1.0, "timeout_seconds": 5}
    params.update(kwargs)
    return OrderResolver(session_factory, sleep=sleep, **params)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("10000001", ("10000001",)),
        ("007", ("007", "7")),
        (" 42", (" 42", "42")),
        ("TR-10001", ("TR-10001",)),
        ("1_000", ("1_000",)),
    ],
)
def test_lookup_keys(raw, expected):
    assert lookup_keys(raw) == expected


@pytest.mark.parametrize(
    "exc,expected",
    [
        (ConnectionRefusedError(), "transient"),
        (TimeoutError(), "transient"),
        (OSError("network unreachable"), "transient"),
        (OperationalError("select 1", {}, Exception("server closed the connection")), "transient"),
        (DBAPIError("select 1", {}, ConnectionResetError()), "transient"),
        (NoResultFound(), "not_found"),
        (ProgrammingError("select 1", {}, Exception("syntax error")), "terminal"),
        (ValueError("boom"), "terminal"),
    ],
)
def test_classify_failure(exc, expected):
    assert classify_failure(exc) == expected


@pytest.mark.anyio
async def test_found_on_first_attempt(monkeypatch, session_factory, recording_sleep, shipped_row):
    repo = _FakeRepo(shipped_row)
    _install_repo(monkeypatch, repo)

    result = await _resolver(session_factory, recording_sleep).resolve("10000001")

    assert result.outcome == "found"
    assert result.order.order_id == "10000001"
    assert result.order.status == "SHIPPED"
    assert result.attempts == 1
    assert recording_sleep.delays == []
    repo.get_order.assert_awaited_once_with(("10000001",))


@pytest.mark.anyio
async def test_integer_like_id_queries_both_forms(monkeypatch, session_factory, recording_sleep, shipped_row):
    repo = _FakeRepo(shipped_row)
    _install_repo(monkeypatch, repo)

    await _resolver(session_factory, recording_sleep, table="legacy_orders").resolve("007")

    repo.get_order.assert_awaited_once_with(("007", "7"))
    assert repo.tables == ["legacy_orders"]


@pytest.mark.anyio
async def test_retries_transient_then_succeeds(monkeypatch, session_factory, recording_sleep, shipped_row):
    repo = _FakeRepo(ConnectionRefusedError(), TimeoutError(), shipped_row)
    _install_repo(monkeypatch, repo)

    result = await _resolver(session_factory, recording_sleep).resolve("10000001")

    assert result.outcome == "found"
    assert result.attempts == 3
    assert recording_sleep.delays == [1.0, 2.0]
    assert repo.get_order.await_count == 3


@pytest.mark.anyio
async def test_transient_exhaustion_fails_with_connectivity_message(monkeypatch, session_factory, recording_sleep):
    repo = _FakeRepo(
        ConnectionRefusedError("password=hunter2"),
        ConnectionRefusedError(),
        OperationalError("select", {}, Exception("could not connect")),
    )
    _install_repo(monkeypatch, repo)

    result = await _resolver(session_factory, recording_sleep).resolve("10000001")

    assert result.outcome == "failed"
    assert result.error == "Database connection failed after 3 attempts"
    assert "hunter2" not in result.error
    assert isinstance(result.cause, OperationalError)
    assert recording_sleep.delays == [1.0, 2.0]


@pytest.mark.anyio
async def test_terminal_error_is_not_retried(monkeypatch, session_factory, recording_sleep):
    repo = _FakeRepo(ProgrammingError("select", {}, Exception('relation "orders" does not exist')))
    _install_repo(monkeypatch, repo)

    result = await _resolver(session_factory, recording_sleep).resolve("10000001")

    assert result.outcome == "failed"
    assert result.error == "Database query failed"
    assert result.attempts == 1
    assert recording_sleep.delays == []


@pytest.mark.anyio
async def test_missing_row_is_not_found(monkeypatch, session_factory, recording_sleep):
    repo = _FakeRepo(None)
    _install_repo(monkeypatch, repo)

    result = await _resolver(session_factory, recording_sleep).resolve("99999999")

    assert result.outcome == "not_found"
    assert result.order is None
    assert result.error is None


@pytest.mark.anyio
async def test_not_found_sentinel_is_not_retried(monkeypatch, session_factory, recording_sleep):
    repo = _FakeRepo(NoResultFound())
    _install_repo(monkeypatch, repo)

    result = await _resolver(session_factory, recording_sleep).resolve("99999999")

    assert result.outcome == "not_found"
    assert repo.get_order.await_count == 1
    assert recording_sleep.delays == []


@pytest.mark.anyio
async def test_row_without_order_id_is_failure(monkeypatch, session_factory, recording_sleep):
    repo = _FakeRepo({"status": "SHIPPED"})
    _install_repo(monkeypatch, repo)

    result = await _resolver(session_factory, recording_sleep).resolve("10000001")

    assert result.outcome == "failed"
    assert result.error == "Invalid order data: missing order_id"


@pytest.mark.anyio
async def test_query_timeout_counts_as_transient(monkeypatch, session_factory, recording_sleep):
    async def slow(keys):
        await anyio.sleep(1)

    repo = _FakeRepo()
    repo.get_order = slow
    _install_repo(monkeypatch, repo)

    result = await _resolver(session_factory, recording_sleep, max_attempts=1, timeout_seconds=0.01).resolve("A1")

    assert result.outcome == "failed"
    assert result.error == "Database connection failed after 1 attempts"


def test_get_resolver_is_shared():
    assert lookup.get_resolver() is lookup.get_resolver()


def test_explicit_zero_overrides_are_kept():
    resolver = OrderResolver(max_attempts=1, backoff_seconds=0, timeout_seconds=0)
    assert resolver.max_attempts == 1
    assert resolver.backoff_seconds == 0
    assert resolver.timeout_seconds == 0


def test_zero_max_attempts_is_rejected():
    with pytest.raises(ValueError):
        OrderResolver(max_attempts=0)
