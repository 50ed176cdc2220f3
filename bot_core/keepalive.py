# bot_core/keepalive.py
# Tiny HTTP endpoint so free hosting tiers see the process as alive.

import logging

from aiohttp import web

logger = logging.getLogger('InviteBot')


async def _handle_root(request: web.Request) -> web.Response:
    bot = request.app.get("bot")
    name = bot.user.name if bot is not None and bot.user else "Invite Tracker"
    return web.Response(text=f"✅ {name} is online and running!")


async def _handle_health(_: web.Request) -> web.Response:
    return web.Response(text="OK")


def create_app(bot=None) -> web.Application:
    app = web.Application()
    app["bot"] = bot
    app.router.add_get("/", _handle_root)
    app.router.add_get("/health", _handle_health)
    return app


async def start_web_server(bot, port: int) -> web.AppRunner:
    runner = web.AppRunner(create_app(bot))
    await runner.setup()
    site = web.TCPSite(runner, host="0.0.0.0", port=port)
    await site.start()
    logger.info(f"🌐 Web server running on port {port}")
    return runner
