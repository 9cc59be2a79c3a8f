import logging
from typing import Optional
from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest

from ..config import SANDBOX_ENABLED
from ..schemas import OrderStatusResult
from .keyboards.common import polling_kb, result_kb, retry_kb
from .texts import checking_text, result_text, timeout_text

logger = logging.getLogger(__name__)


class TelegramStatusView:
    """
    Рисует ход проверки в одном сообщении чата: первая попытка
    отправляет новое сообщение, дальше оно редактируется.
    """

    def __init__(self, bot: Bot, chat_id: int, *, sandbox: bool = SANDBOX_ENABLED):
        self.bot = bot
        self.chat_id = chat_id
        self.sandbox = sandbox
        self.message_id: Optional[int] = None

    async def _render(self, text: str, reply_markup=None, *, new: bool = False):
        if new or self.message_id is None:
            msg = await self.bot.send_message(self.chat_id, text, reply_markup=reply_markup)
            self.message_id = msg.message_id
            return
        try:
            await self.bot.edit_message_text(
                text, chat_id=self.chat_id, message_id=self.message_id, reply_markup=reply_markup
            )
        except TelegramBadRequest as e:
            # "message is not modified" и удалённые сообщения не критичны
            logger.warning("Edit of status message in chat %s failed: %s", self.chat_id, e)

    async def checking(self, order_id: str, attempt: int, max_attempts: int) -> None:
        await self._render(checking_text(order_id, attempt, max_attempts), polling_kb(order_id), new=attempt == 1)

    async def result(self, order_id: str, data: OrderStatusResult) -> None:
        await self._render(result_text(order_id, data), result_kb(order_id, data.status, self.sandbox))

    async def timeout(self, order_id: str) -> None:
        await self._render(timeout_text(order_id), retry_kb(order_id))
