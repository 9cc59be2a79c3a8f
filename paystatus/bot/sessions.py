from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional
from aiogram import Bot

from ..config import SESSIONS_MAX_CHATS
from ..schemas import OrderStatusResult
from ..services.order_ledger import OrderLedger
from ..services.order_poll import OrderPoller
from ..services.payment_store import KeyValueStorage, PaymentStore
from .views import TelegramStatusView


@dataclass
class ChatState:
    storage: KeyValueStorage
    ledger: OrderLedger
    store: Optional[PaymentStore] = None
    poller: Optional[OrderPoller] = None


class ChatSessions:
    """
    Опросчик, хранилище ссылки и история заказов на каждый чат.

    Держим не больше max_chats чатов: самые давние без активного опроса
    выкидываются. Со storage в Redis они просто поднимутся заново через load().
    """

    def __init__(
        self, storage_factory: Callable[[int], KeyValueStorage], *,
        max_chats: int = SESSIONS_MAX_CHATS, **poller_kwargs,
    ):
        self.storage_factory = storage_factory
        self.max_chats = max_chats
        self.poller_kwargs = poller_kwargs
        self._chats: OrderedDict[int, ChatState] = OrderedDict()

    def __len__(self) -> int:
        return len(self._chats)

    def __contains__(self, chat_id: int) -> bool:
        return chat_id in self._chats

    def _chat(self, chat_id: int) -> ChatState:
        state = self._chats.get(chat_id)
        if state is None:
            storage = self.storage_factory(chat_id)
            state = ChatState(storage=storage, ledger=OrderLedger(storage))
            self._chats[chat_id] = state
        self._chats.move_to_end(chat_id)
        self._evict(keep=chat_id)
        return state

    def _evict(self, keep: int) -> None:
        if len(self._chats) <= self.max_chats:
            return
        for chat_id in list(self._chats):
            if len(self._chats) <= self.max_chats:
                break
            state = self._chats[chat_id]
            if chat_id == keep or (state.poller is not None and not state.poller.finished):
                continue
            del self._chats[chat_id]

    async def store(self, chat_id: int) -> PaymentStore:
        state = self._chat(chat_id)
        if state.store is None:
            state.store = PaymentStore(state.storage)
            await state.store.load()
        return state.store

    def ledger(self, chat_id: int) -> OrderLedger:
        return self._chat(chat_id).ledger

    def poller(self, bot: Bot, chat_id: int) -> OrderPoller:
        state = self._chat(chat_id)
        if state.poller is None:
            ledger = state.ledger

            async def on_result(order_id: str, data: OrderStatusResult):
                await ledger.apply_poll_result(order_id, data)

            state.poller = OrderPoller(TelegramStatusView(bot, chat_id), on_result=on_result, **self.poller_kwargs)
        return state.poller

    def stop_all(self) -> None:
        for state in self._chats.values():
            if state.poller is not None:
                state.poller.stop()
