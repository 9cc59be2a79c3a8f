from aiogram.utils.keyboard import InlineKeyboardBuilder
from aiogram import types

from ...schemas import OrderStatus
from ...services.payments_api import RESULT_CODE_SUCCESS, RESULT_CODE_FAILED

BTN_STOP = "status_stop:"
BTN_RETURN = "status_return"
BTN_RETRY = "status_retry:"
BTN_SIMULATE = "simulate:"

# лимит Telegram на callback_data
CALLBACK_DATA_MAX_BYTES = 64
# самый длинный префикс: "simulate:" + ":00"
MAX_ORDER_ID_BYTES = CALLBACK_DATA_MAX_BYTES - len(BTN_SIMULATE) - len(":") - len(RESULT_CODE_SUCCESS)


def order_id_fits(order_id: str) -> bool:
    return 0 < len(order_id.encode("utf-8")) <= MAX_ORDER_ID_BYTES

def polling_kb(order_id: str) -> types.InlineKeyboardMarkup | None:
    if not order_id_fits(order_id):
        return None
    kb = InlineKeyboardBuilder()
    kb.button(text="⏹ Остановить проверку", callback_data=f"{BTN_STOP}{order_id}")
    return kb.as_markup()

def retry_kb(order_id: str, with_return: bool = True) -> types.InlineKeyboardMarkup | None:
    kb = InlineKeyboardBuilder()
    if with_return:
        kb.row(types.InlineKeyboardButton(text="💳 Вернуться к оплате", callback_data=BTN_RETURN))
    if order_id_fits(order_id):
        kb.row(types.InlineKeyboardButton(text="🔄 Проверить снова", callback_data=f"{BTN_RETRY}{order_id}"))
    markup = kb.as_markup()
    return markup if markup.inline_keyboard else None

def result_kb(order_id: str, status: OrderStatus, sandbox: bool = False) -> types.InlineKeyboardMarkup | None:
    if status is OrderStatus.SUCCESS:
        return None
    kb = InlineKeyboardBuilder()
    kb.row(types.InlineKeyboardButton(text="💳 Вернуться к оплате", callback_data=BTN_RETURN))
    if order_id_fits(order_id):
        kb.row(types.InlineKeyboardButton(text="🔄 Проверить снова", callback_data=f"{BTN_RETRY}{order_id}"))
        if sandbox and status is OrderStatus.PENDING:
            kb.row(*[
                types.InlineKeyboardButton(text="🧪 Успех", callback_data=f"{BTN_SIMULATE}{order_id}:{RESULT_CODE_SUCCESS}"),
                types.InlineKeyboardButton(text="🧪 Отказ", callback_data=f"{BTN_SIMULATE}{order_id}:{RESULT_CODE_FAILED}"),
            ])
    return kb.as_markup()

def payment_link_kb(url: str, order_id: str | None = None) -> types.InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.row(types.InlineKeyboardButton(text="💳 Перейти к оплате", url=url))
    if order_id and order_id_fits(order_id):
        kb.row(types.InlineKeyboardButton(text="🔎 Проверить статус", callback_data=f"{BTN_RETRY}{order_id}"))
    return kb.as_markup()

def parse_simulate(data: str) -> tuple[str, str] | None:
    payload = data[len(BTN_SIMULATE):]
    order_id, sep, code = payload.rpartition(":")
    if not sep or not order_id or not code:
        return None
    return order_id, code
