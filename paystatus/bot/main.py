import asyncio
import logging
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from ..config import BOT_TOKEN, LOG_LEVEL, REDIS_URL
from ..storage import MemoryStorage, RedisStorage, get_redis, close_redis
from .handlers import start, status, checkout, history
from .sessions import ChatSessions


async def _storage_factory():
    if not REDIS_URL:
        logging.warning("REDIS_URL не задан: ссылки на оплату хранятся только в памяти")
        return lambda chat_id: MemoryStorage()
    redis = await get_redis()
    return lambda chat_id: RedisStorage(redis, prefix=f"paystatus:{chat_id}")

async def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if not BOT_TOKEN:
        raise RuntimeError("BOT_TOKEN is not set")

    bot = Bot(token=BOT_TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    sessions = ChatSessions(await _storage_factory())

    dp = Dispatcher()
    dp.include_router(start.get_router(sessions))
    dp.include_router(status.get_router(sessions))
    dp.include_router(checkout.get_router(sessions))
    dp.include_router(history.get_router(sessions))

    try:
        await dp.start_polling(bot)
    finally:
        sessions.stop_all()
        await close_redis()
        await bot.session.close()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
