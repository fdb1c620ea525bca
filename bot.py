import asyncio

from aiogram.client.default import DefaultBotProperties
from aiogram import Bot, Dispatcher, Router
from aiogram.fsm.storage.memory import MemoryStorage

# ============ Configuration ============

from config_env import TELEGRAM_TOKEN
from fallback import Fallback

# Logging
from logger import logger

from parsers.manager import ParserManager

# Handlers
from handlers import (
    register_start_handlers,
    register_lookup_handlers,
)

# ============ Services ============

print("🤖 Bot starting...")
parser_manager = ParserManager()
logger.info(f"Sources: {', '.join(p.title for p in parser_manager.providers)}")

# ============ Routers ============

bot = Bot(token=TELEGRAM_TOKEN, default=DefaultBotProperties(parse_mode="HTML"))
dp = Dispatcher(storage=MemoryStorage())

start_router = Router()
lookup_router = Router()

register_start_handlers(start_router)
register_lookup_handlers(lookup_router, parser_manager)

dp.include_router(start_router)
dp.include_router(lookup_router)
dp.include_router(Fallback.router)  # Fallback must be last

# ============ Entry point ============

async def main():
    try:
        await dp.start_polling(bot)
    finally:
        await parser_manager.close()
        logger.info("🛑 Bot stopped, HTTP clients closed")

if __name__ == "__main__":
    asyncio.run(main())
