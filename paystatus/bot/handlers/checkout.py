import logging
from aiogram import Router, types
from aiogram.filters import Command, CommandObject

from ...exceptions import PaymentsApiError
from ...services.checkout import start_checkout
from ..keyboards.common import payment_link_kb
from ..sessions import ChatSessions

logger = logging.getLogger(__name__)


def get_router(sessions: ChatSessions) -> Router:
    router = Router(name="checkout")

    # /pay 150000 Landing page
    @router.message(Command("pay"))
    async def pay(m: types.Message, command: CommandObject):
        price_str, _, product = (command.args or "").strip().partition(" ")
        try:
            price = int(price_str.replace(".", "").replace(",", ""))
            if price <= 0:
                raise ValueError()
        except ValueError:
            await m.answer("Использование: <code>/pay 150000 Название товара</code>")
            return
        product = product.strip()
        if not product:
            await m.answer("Укажите название товара. Пример: <code>/pay 150000 Landing page</code>")
            return

        store = await sessions.store(m.chat.id)
        try:
            result = await start_checkout(store, product, price, ledger=sessions.ledger(m.chat.id))
        except PaymentsApiError as e:
            logger.error("Checkout failed for chat %s: %s", m.chat.id, e)
            await m.answer("Не удалось создать платёж. Попробуйте ещё раз позже.")
            return

        minutes = store.remaining_seconds() // 60
        text = "Ссылка на оплату готова."
        if result.merchant_order_id:
            text += f"\nЗаказ: <code>{result.merchant_order_id}</code>\nСсылка действительна {minutes} мин."
        await m.answer(text, reply_markup=payment_link_kb(result.payment_url, result.merchant_order_id))

    return router
