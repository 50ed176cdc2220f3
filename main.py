import asyncio
import sys

from bot_core import InviteBot, setup_logging
from bot_core.config import Config


async def main():
    logger = setup_logging()

    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"❌ {e}. Set it in your environment or .env file.")
        sys.exit(1)

    bot = InviteBot()

    try:
        logger.info("🚀 Starting Invite Tracker...")
        await bot.start(Config.BOT_TOKEN)
    except KeyboardInterrupt:
        logger.info("⌨️ Received interrupt signal")
    except Exception as e:
        logger.critical(f"💥 Fatal error: {e}", exc_info=e)
    finally:
        await bot.close()


if __name__ == "__main__":
    try:
        if sys.platform == 'win32':
            asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
