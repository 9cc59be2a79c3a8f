from aiogram import Router, F, types
from aiogram.filters import Command, CommandObject

from ...config import SANDBOX_ENABLED
from ...exceptions import PaymentsApiError, PaymentLinkExpired
from ...services.checkout import return_to_payment
from ...services.payments_api import simulate_callback
from ...services.status_params import params_from_url, resolve_order_id, legacy_outcome
from ..keyboards.common import (
    BTN_STOP, BTN_RETURN, BTN_RETRY, BTN_SIMULATE, MAX_ORDER_ID_BYTES,
    order_id_fits, retry_kb, payment_link_kb, parse_simulate,
)
from ..sessions import ChatSessions
from ..texts import stopped_text, legacy_text, link_expired_text

USAGE = "Использование: <code>/status ORDER_ID</code> или ссылка со страницы оплаты."
TOO_LONG = f"Слишком длинный номер заказа (максимум {MAX_ORDER_ID_BYTES} байт)."


def get_router(sessions: ChatSessions) -> Router:
    router = Router(name="status")

    async def start_polling(m: types.Message, order_id: str):
        # кнопки несут order_id в callback_data, а там лимит 64 байта
        if not order_id_fits(order_id):
            await m.answer(TOO_LONG)
            return
        sessions.poller(m.bot, m.chat.id).start(order_id)

    # /status ORD-1  или  /status https://site/payment-status?merchantOrderId=ORD-1
    @router.message(Command("status"))
    async def status(m: types.Message, command: CommandObject):
        arg = (command.args or "").strip()
        if not arg:
            store = await sessions.store(m.chat.id)
            order_id = store.get_current_order_id()
            if not order_id:
                await m.answer(USAGE)
                return
            await start_polling(m, order_id)
            return

        if "?" in arg or arg.startswith("http"):
            params = params_from_url(arg)
            order_id = resolve_order_id(params)
            if not order_id:
                # старая ссылка: показываем результат из resultCode без опроса
                await m.answer(legacy_text(legacy_outcome(params)))
                return
        else:
            order_id = arg

        await start_polling(m, order_id)

    @router.callback_query(F.data.startswith(BTN_STOP))
    async def stop(cb: types.CallbackQuery):
        order_id = cb.data[len(BTN_STOP):]
        poller = sessions.poller(cb.bot, cb.message.chat.id)
        # кнопка со старого сообщения не должна гасить чужую проверку
        if poller.finished or poller.session is None or poller.session.order_id != order_id:
            await cb.answer("Эта проверка уже завершена.")
            return
        poller.stop()
        await cb.answer()
        await cb.message.edit_text(stopped_text(order_id), reply_markup=retry_kb(order_id, with_return=False))

    @router.callback_query(F.data.startswith(BTN_RETRY))
    async def retry(cb: types.CallbackQuery):
        order_id = cb.data[len(BTN_RETRY):]
        await cb.answer()
        if order_id:
            await start_polling(cb.message, order_id)

    @router.callback_query(F.data == BTN_RETURN)
    async def back_to_payment(cb: types.CallbackQuery):
        store = await sessions.store(cb.message.chat.id)
        try:
            url = await return_to_payment(store)
        except PaymentLinkExpired:
            await cb.answer(link_expired_text(), show_alert=True)
            return
        await cb.answer()
        minutes = store.remaining_seconds() // 60
        await cb.message.answer(
            f"Ссылка на оплату действительна ещё {minutes} мин.",
            reply_markup=payment_link_kb(url),
        )

    @router.callback_query(F.data.startswith(BTN_SIMULATE))
    async def simulate(cb: types.CallbackQuery):
        if not SANDBOX_ENABLED:
            await cb.answer("Симуляция доступна только в песочнице.", show_alert=True)
            return
        parsed = parse_simulate(cb.data)
        if parsed is None:
            await cb.answer()
            return
        order_id, code = parsed
        sessions.poller(cb.bot, cb.message.chat.id).stop()
        try:
            resp = await simulate_callback(order_id, code)
        except PaymentsApiError as e:
            await cb.answer(f"Ошибка: {e.message}", show_alert=True)
            return
        await cb.answer(resp.message)
        await start_polling(cb.message, order_id)

    return router
