import asyncio
from types import SimpleNamespace

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import EditMessageText

from paystatus.bot.keyboards.common import (
    result_kb, retry_kb, polling_kb, payment_link_kb, parse_simulate, order_id_fits,
    BTN_RETURN, CALLBACK_DATA_MAX_BYTES, MAX_ORDER_ID_BYTES,
)
from paystatus.bot.sessions import ChatSessions
from paystatus.bot.texts import checking_text, result_text, timeout_text, legacy_text
from paystatus.bot.views import TelegramStatusView
from paystatus.schemas import LedgerStatus, LegacyOutcome, OrderStatus, OrderStatusResult
from paystatus.services.order_poll import PollState
from paystatus.storage import MemoryStorage


class FakeBot:
    def __init__(self, fail_edit: bool = False):
        self.sent = []
        self.edited = []
        self.fail_edit = fail_edit

    async def send_message(self, chat_id, text, reply_markup=None):
        self.sent.append((chat_id, text))
        return SimpleNamespace(message_id=100 + len(self.sent))

    async def edit_message_text(self, text, chat_id=None, message_id=None, reply_markup=None):
        if self.fail_edit:
            raise TelegramBadRequest(method=EditMessageText(text=text), message="message is not modified")
        self.edited.append((chat_id, message_id, text))


def _buttons(markup):
    return [b for row in markup.inline_keyboard for b in row]


def test_texts():
    assert "3/20" in checking_text("ORD-1", 3, 20)
    ok = result_text("ORD-1", OrderStatusResult(found=True, status="SUCCESS", amount=150000, reference="R1"))
    assert "Rp 150.000" in ok and "R1" in ok
    failed = result_text("ORD-1", OrderStatusResult(found=True, status="FAILED", statusMessage="<denied>"))
    assert "&lt;denied&gt;" in failed
    assert "ORD-1" in timeout_text("ORD-1")
    assert "поддержку" in legacy_text(LegacyOutcome(result="UNKNOWN"))

def test_result_keyboard():
    assert result_kb("ORD-1", OrderStatus.SUCCESS) is None

    failed = _buttons(result_kb("ORD-1", OrderStatus.FAILED, sandbox=True))
    assert [b.callback_data for b in failed] == [BTN_RETURN, "status_retry:ORD-1"]

    pending = _buttons(result_kb("ORD-1", OrderStatus.PENDING, sandbox=True))
    assert "simulate:ORD-1:00" in [b.callback_data for b in pending]
    assert "simulate:ORD-1:02" in [b.callback_data for b in pending]

    assert len(_buttons(retry_kb("ORD-1", with_return=False))) == 1

def test_parse_simulate():
    assert parse_simulate("simulate:ORD-1:00") == ("ORD-1", "00")
    assert parse_simulate("simulate:ORD:X:02") == ("ORD:X", "02")
    assert parse_simulate("simulate:") is None

async def test_view_sends_then_edits():
    bot = FakeBot()
    view = TelegramStatusView(bot, chat_id=7, sandbox=False)

    await view.checking("ORD-1", 1, 20)
    await view.checking("ORD-1", 2, 20)
    await view.result("ORD-1", OrderStatusResult(found=True, status="SUCCESS"))

    assert len(bot.sent) == 1
    assert [e[1] for e in bot.edited] == [101, 101]

    # новая сессия начинается новым сообщением
    await view.checking("ORD-1", 1, 20)
    assert len(bot.sent) == 2
    assert view.message_id == 102

async def test_view_ignores_failed_edit():
    bot = FakeBot(fail_edit=True)
    view = TelegramStatusView(bot, chat_id=7)

    await view.checking("ORD-1", 1, 20)
    await view.timeout("ORD-1")

    assert len(bot.sent) == 1

async def test_sessions_per_chat():
    storages = {}

    def factory(chat_id):
        return storages.setdefault(chat_id, MemoryStorage())

    sessions = ChatSessions(factory, interval_sec=0, max_attempts=1)
    bot = FakeBot()

    store = await sessions.store(1)
    assert await sessions.store(1) is store
    assert await sessions.store(2) is not store

    poller = sessions.poller(bot, 1)
    assert sessions.poller(bot, 1) is poller
    assert sessions.poller(bot, 2) is not poller
    assert poller.max_attempts == 1
    assert poller.state is PollState.IDLE

    sessions.stop_all()

@pytest.mark.parametrize("order_id", ["X" * MAX_ORDER_ID_BYTES, "X" * 60, "Ж" * 30])
def test_callback_data_fits_telegram_limit(order_id):
    markups = [
        polling_kb(order_id),
        retry_kb(order_id),
        retry_kb(order_id, with_return=False),
        result_kb(order_id, OrderStatus.PENDING, sandbox=True),
        result_kb(order_id, OrderStatus.FAILED),
        payment_link_kb("https://pay.example/x", order_id),
    ]
    for markup in filter(None, markups):
        for b in _buttons(markup):
            if b.callback_data is not None:
                assert len(b.callback_data.encode("utf-8")) <= CALLBACK_DATA_MAX_BYTES

def test_order_id_fits_boundary():
    assert order_id_fits("X" * MAX_ORDER_ID_BYTES)
    assert not order_id_fits("X" * (MAX_ORDER_ID_BYTES + 1))
    assert not order_id_fits("")
    # кириллица по 2 байта
    assert not order_id_fits("Ж" * (MAX_ORDER_ID_BYTES // 2 + 1))

def test_long_order_id_drops_order_buttons():
    long_id = "X" * 60
    assert polling_kb(long_id) is None
    assert retry_kb(long_id, with_return=False) is None
    assert [b.callback_data for b in _buttons(retry_kb(long_id))] == [BTN_RETURN]
    assert [b.callback_data for b in _buttons(result_kb(long_id, OrderStatus.PENDING, sandbox=True))] == [BTN_RETURN]

def test_stop_button_carries_order_id():
    assert [b.callback_data for b in _buttons(polling_kb("ORD-1"))] == ["status_stop:ORD-1"]

async def test_sessions_evict_oldest_idle_chat():
    sessions = ChatSessions(lambda chat_id: MemoryStorage(), max_chats=2, interval_sec=0, max_attempts=1)

    await sessions.store(1)
    await sessions.store(2)
    await sessions.store(3)

    assert len(sessions) == 2
    assert 1 not in sessions
    assert 2 in sessions and 3 in sessions

async def test_sessions_touch_keeps_chat():
    sessions = ChatSessions(lambda chat_id: MemoryStorage(), max_chats=2)

    await sessions.store(1)
    await sessions.store(2)
    sessions.ledger(1)
    await sessions.store(3)

    assert 1 in sessions and 3 in sessions
    assert 2 not in sessions

async def test_sessions_never_evict_active_poll():
    release = asyncio.Event()

    async def fetch(order_id):
        await release.wait()
        return OrderStatusResult(found=True, status="SUCCESS")

    sessions = ChatSessions(lambda chat_id: MemoryStorage(), max_chats=1,
                            fetch_status=fetch, interval_sec=0, max_attempts=1)
    poller = sessions.poller(FakeBot(), 1)
    poller.start("ORD-1")

    await sessions.store(2)
    assert 1 in sessions and 2 in sessions

    release.set()
    await poller.wait()
    await sessions.store(3)
    assert 1 not in sessions

async def test_sessions_reload_evicted_chat_from_storage():
    storages = {}
    sessions = ChatSessions(lambda chat_id: storages.setdefault(chat_id, MemoryStorage()), max_chats=1)

    store = await sessions.store(1)
    await store.set_current_order_id("ORD-1")
    await sessions.store(2)
    assert 1 not in sessions

    again = await sessions.store(1)
    assert again is not store
    assert again.get_current_order_id() == "ORD-1"

async def test_sessions_poll_result_updates_ledger():
    async def fetch(order_id):
        return OrderStatusResult(found=True, status="SUCCESS", reference="REF1", paymentMethod="VC")

    sessions = ChatSessions(lambda chat_id: MemoryStorage(), fetch_status=fetch, interval_sec=0, max_attempts=1)
    ledger = sessions.ledger(1)
    await ledger.save("ORD-1", "Landing page", 150000)

    poller = sessions.poller(FakeBot(), 1)
    poller.start("ORD-1")
    await poller.wait()

    order = await ledger.get("ORD-1")
    assert order.status is LedgerStatus.PAID
    assert order.reference == "REF1"
    assert order.payment_method == "VC"
