from aiogram import Router, types
from aiogram.filters import Command

from ..sessions import ChatSessions
from ..texts import history_text

PAGE_SIZE = 10


def get_router(sessions: ChatSessions) -> Router:
    router = Router(name="history")

    @router.message(Command("history"))
    async def history(m: types.Message):
        orders = await sessions.ledger(m.chat.id).list_orders()
        # свежие сверху
        orders = sorted(orders, key=lambda o: o.created_at, reverse=True)
        await m.answer(history_text(orders[:PAGE_SIZE], total=len(orders)))

    return router
