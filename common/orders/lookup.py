"""Order lookup against the ``orders`` table with bounded retry.

A lookup ends in one of three outcomes: ``found`` (with a normalized order),
``not_found``, or ``failed`` (with a message that is safe to hand back to the
caller). Transient connectivity failures are retried with linear backoff;
anything else ends the lookup on the spot.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Awaitable, Callable, Dict, Literal, Optional

import anyio
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import DBAPIError, InterfaceError, NoResultFound, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.app.config import settings
from api.app.db import get_sessionmaker
from common.db.dao import OrderRepository
from common.norm import CanonicalOrder, InvalidOrderRecord
from common.norm.orders import normalize_order

LOG = logging.getLogger(__name__)

FailureKind = Literal["transient", "not_found", "terminal"]
Outcome = Literal["found", "not_found", "failed"]
Sleep = Callable[[float], Awaitable[Any]]

_INT_RE = re.compile(r"[+-]?\d+")

_TRANSIENT_ERRORS = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
    TimeoutError,
    ConnectionError,
    OSError,
)


def classify_failure(exc: BaseException) -> FailureKind:
    if isinstance(exc, NoResultFound):
        return "not_found"
    if isinstance(exc, _TRANSIENT_ERRORS):
        return "transient"
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated or isinstance(exc.orig, (TimeoutError, OSError)):
            return "transient"
    return "terminal"


def lookup_keys(order_id: str) -> tuple[str, ...]:
    """Identifier forms to match: the raw string, plus its integer form when it
    parses as one (``"007"`` also matches a numeric ``7``)."""
    stripped = order_id.strip()
    if not _INT_RE.fullmatch(stripped):
        return (order_id,)
    as_int = str(int(stripped))
    if as_int == order_id:
        return (order_id,)
    return (order_id, as_int)


class LookupResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    outcome: Outcome
    order_id: str
    order: Optional[CanonicalOrder] = None
    error: Optional[str] = None
    cause: Optional[BaseException] = None
    attempts: int = 0

    @classmethod
    def found(cls, order_id: str, order: CanonicalOrder, attempts: int) -> "LookupResult":
        return cls(outcome="found", order_id=order_id, order=order, attempts=attempts)

    @classmethod
    def not_found(cls, order_id: str, attempts: int) -> "LookupResult":
        return cls(outcome="not_found", order_id=order_id, attempts=attempts)

    @classmethod
    def failed(
        cls, order_id: str, error: str, attempts: int, cause: Optional[BaseException] = None
    ) -> "LookupResult":
        return cls(outcome="failed", order_id=order_id, error=error, cause=cause, attempts=attempts)


class OrderResolver:
    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        *,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        table: Optional[str] = None,
        sleep: Sleep = anyio.sleep,
    ) -> None:
        self._session_factory = session_factory
        self.max_attempts = settings.lookup_max_attempts if max_attempts is None else max_attempts
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.backoff_seconds = settings.lookup_backoff_seconds if backoff_seconds is None else backoff_seconds
        self.timeout_seconds = settings.db_query_timeout_seconds if timeout_seconds is None else timeout_seconds
        self.table = table or settings.orders_table
        self.sleep = sleep

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_sessionmaker()
        return self._session_factory

    async def _fetch(self, keys: tuple[str, ...]) -> Optional[Dict[str, Any]]:
        with anyio.fail_after(self.timeout_seconds):
            async with self.session_factory() as session:
                repo = OrderRepository(session, table=self.table)
                return await repo.get_order(keys)

    async def resolve(self, order_id: str, request_id: Optional[str] = None) -> LookupResult:
        keys = lookup_keys(order_id)
        log_extra = {"request_id": request_id, "order_id": order_id}
        row: Optional[Dict[str, Any]] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                row = await self._fetch(keys)
                break
            except Exception as exc:
                kind = classify_failure(exc)
                if kind == "not_found":
                    LOG.info("order not found", extra=log_extra)
                    return LookupResult.not_found(order_id, attempt)

                if kind == "transient" and attempt < self.max_attempts:
                    delay = self.backoff_seconds * attempt
                    LOG.warning(
                        "transient failure on attempt %d/%d, retrying in %.1fs: %s",
                        attempt,
                        self.max_attempts,
                        delay,
                        type(exc).__name__,
                        extra=log_extra,
                    )
                    await self.sleep(delay)
                    continue

                if kind == "transient":
                    message = f"Database connection failed after {attempt} attempts"
                else:
                    message = "Database query failed"
                LOG.error("order lookup failed: %s", message, exc_info=exc, extra=log_extra)
                return LookupResult.failed(order_id, message, attempt, cause=exc)

        if row is None:
            LOG.info("order not found", extra=log_extra)
            return LookupResult.not_found(order_id, attempt)

        try:
            order = normalize_order(row)
        except InvalidOrderRecord as exc:
            return LookupResult.failed(order_id, str(exc), attempt, cause=exc)

        LOG.info("order found", extra={**log_extra, "status": order.status})
        return LookupResult.found(order_id, order, attempt)


_resolver: Optional[OrderResolver] = None


def get_resolver() -> OrderResolver:
    global _resolver
    if _resolver is None:
        _resolver = OrderResolver()
    return _resolver
