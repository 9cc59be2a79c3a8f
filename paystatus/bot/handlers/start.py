from aiogram import Router, types
from aiogram.filters import CommandStart, CommandObject

from ..keyboards.common import order_id_fits
from ..sessions import ChatSessions

HELP = (
    "Бот проверки статуса оплаты.\n\n"
    "/pay <code>сумма</code> <code>товар</code> - создать платёж\n"
    "/status <code>ORDER_ID</code> - проверить статус заказа\n"
    "/status - проверить последний заказ\n"
    "/history - история заказов"
)


def get_router(sessions: ChatSessions) -> Router:
    router = Router(name="start")

    # t.me/<bot>?start=<merchantOrderId> сразу запускает проверку
    @router.message(CommandStart())
    async def start(m: types.Message, command: CommandObject):
        order_id = (command.args or "").strip()
        if order_id and order_id_fits(order_id):
            sessions.poller(m.bot, m.chat.id).start(order_id)
            return
        await m.answer(HELP)

    return router
