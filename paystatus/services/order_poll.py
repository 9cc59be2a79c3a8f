import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from ..config import POLL_INTERVAL_SEC, POLL_MAX_ATTEMPTS
from ..exceptions import PaymentsApiError
from ..schemas import OrderStatus, OrderStatusResult
from .payments_api import get_order_status

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    IDLE = "IDLE"
    POLLING = "POLLING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PENDING = "PENDING"
    TIMEOUT = "TIMEOUT"
    USER_STOPPED = "USER_STOPPED"


_RESULT_STATES = {
    OrderStatus.SUCCESS: PollState.SUCCESS,
    OrderStatus.FAILED: PollState.FAILED,
    OrderStatus.PENDING: PollState.PENDING,
}


class StatusView(Protocol):
    """Куда рисуем ход проверки (сообщение в Telegram, консоль, тестовый шпион)."""

    async def checking(self, order_id: str, attempt: int, max_attempts: int) -> None: ...
    async def result(self, order_id: str, data: OrderStatusResult) -> None: ...
    async def timeout(self, order_id: str) -> None: ...


class CancelToken:
    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, delay: float) -> bool:
        """Спит delay секунд; True, если разбудила отмена."""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True


async def cancellable_sleep(token: CancelToken, delay: float) -> bool:
    return await token.sleep(delay)


@dataclass
class PollSession:
    order_id: str
    max_attempts: int
    interval_sec: float
    attempt_count: int = 0
    token: CancelToken = field(default_factory=CancelToken)

    @property
    def active(self) -> bool:
        return not self.token.cancelled


class OrderPoller:
    """
    Опрашивает статус одного заказа с фиксированным интервалом.

    Сессия заканчивается на found=true, на потолке попыток (TIMEOUT) или
    по stop() (USER_STOPPED). Ошибки запроса считаются обычной неудачной
    попыткой. Новый start() отменяет предыдущую сессию.

    Ошибки view и on_result только логируются: состояние опроса от них не зависит.
    """

    def __init__(
        self,
        view: StatusView,
        *,
        fetch_status: Callable[[str], Awaitable[OrderStatusResult]] = get_order_status,
        sleep: Callable[[CancelToken, float], Awaitable[bool]] = cancellable_sleep,
        on_result: Optional[Callable[[str, OrderStatusResult], Awaitable[None]]] = None,
        interval_sec: float = POLL_INTERVAL_SEC,
        max_attempts: int = POLL_MAX_ATTEMPTS,
    ):
        self.view = view
        self.fetch_status = fetch_status
        self.sleep = sleep
        self.on_result = on_result
        self.interval_sec = interval_sec
        self.max_attempts = max_attempts
        self.state = PollState.IDLE
        self.session: Optional[PollSession] = None
        self.last_result: Optional[OrderStatusResult] = None
        self._task: Optional[asyncio.Task] = None

    def start(self, order_id: str) -> asyncio.Task:
        if not isinstance(order_id, str) or not order_id.strip():
            raise ValueError("order_id must be a non-empty string")
        self._cancel_session()
        session = PollSession(order_id.strip(), self.max_attempts, self.interval_sec)
        self.session = session
        self.state = PollState.POLLING
        self.last_result = None
        self._task = asyncio.create_task(self._run(session))
        return self._task

    def stop(self) -> None:
        if self.state is PollState.POLLING:
            self.state = PollState.USER_STOPPED
            logger.info("Polling for %s stopped by user", self.session.order_id)
        self._cancel_session()

    async def wait(self) -> PollState:
        if self._task is not None:
            await self._task
        return self.state

    @property
    def finished(self) -> bool:
        return self.state is not PollState.POLLING

    def _cancel_session(self) -> None:
        if self.session is not None:
            self.session.token.cancel()

    def _is_current(self, session: PollSession) -> bool:
        return session is self.session and session.active

    async def _run(self, session: PollSession) -> None:
        try:
            await self._loop(session)
        except Exception:
            # сюда попадают только неожиданные ошибки fetch_status/sleep
            logger.exception("Polling for %s crashed", session.order_id)
            if self._is_current(session):
                self._finish(session, PollState.TIMEOUT)
                await self._notify(self.view.timeout, session.order_id)

    async def _loop(self, session: PollSession) -> None:
        while self._is_current(session):
            session.attempt_count += 1
            await self._notify(self.view.checking, session.order_id, session.attempt_count, session.max_attempts)
            if not self._is_current(session):
                return

            data = await self._attempt(session)
            # пока ждали ответ, сессию могли остановить или заменить
            if not self._is_current(session):
                return

            if data is not None and data.found:
                self._finish(session, _RESULT_STATES[data.status])
                self.last_result = data
                if self.on_result is not None:
                    await self._notify(self.on_result, session.order_id, data)
                await self._notify(self.view.result, session.order_id, data)
                return

            if session.attempt_count >= session.max_attempts:
                self._finish(session, PollState.TIMEOUT)
                logger.info("Order %s not verified after %s attempts", session.order_id, session.attempt_count)
                await self._notify(self.view.timeout, session.order_id)
                return

            if await self.sleep(session.token, session.interval_sec):
                return

    async def _attempt(self, session: PollSession) -> Optional[OrderStatusResult]:
        try:
            return await self.fetch_status(session.order_id)
        except PaymentsApiError as e:
            logger.warning("Status check %s/%s for %s failed: %s",
                           session.attempt_count, session.max_attempts, session.order_id, e)
            return None

    async def _notify(self, callback, *args) -> None:
        try:
            await callback(*args)
        except Exception:
            logger.exception("%s failed for order %s", getattr(callback, "__name__", callback), args[0])

    def _finish(self, session: PollSession, state: PollState) -> None:
        session.token.cancel()
        self.state = state
