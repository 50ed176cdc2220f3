# bot_core/bot.py
import logging
from datetime import datetime, timezone

import aiohttp
import discord
from discord.ext import commands, tasks

from .config import Config
from .database import DatabaseHandler
from .events import EventHandler
from .keepalive import start_web_server
from .logger import webhook_handler
from .source import GuildInviteSource
from .tracker import InviteTracker

logger = logging.getLogger('InviteBot')


class InviteBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.invites = True
        intents.members = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
            activity=discord.Activity(
                type=discord.ActivityType.watching,
                name="server invites"
            ),
            status=discord.Status.online,
            allowed_mentions=discord.AllowedMentions(
                everyone=False,
                roles=False,
                users=False,
                replied_user=False
            )
        )

        self.start_time = datetime.now(timezone.utc)
        self.session = None
        self.web_runner = None
        self.store = DatabaseHandler(Config.DATA_DIR)
        self.tracker = None
        self.event_handler = EventHandler(self)
        self.tree.error(self.event_handler.on_app_command_error)

    async def setup_hook(self):
        logger.info("🚀 Initializing...")

        self.session = aiohttp.ClientSession()
        webhook_handler.session = self.session
        if Config.ERROR_WEBHOOK:
            webhook_handler.webhook_url = Config.ERROR_WEBHOOK

        self.tracker = InviteTracker.from_store(self.store)
        logger.info(f"📂 Loaded data from {self.store.data_dir}")

        await self.load_cogs()

        if Config.KEEPALIVE_ENABLED:
            try:
                self.web_runner = await start_web_server(self, Config.PORT)
            except OSError as e:
                logger.error(f"❌ Keep-alive server failed to start on port {Config.PORT}: {e}")

        self.refresh_invites.change_interval(minutes=Config.INVITE_REFRESH_MINUTES)
        self.refresh_invites.start()
        logger.info("✅ Ready!")

    async def load_cogs(self):
        for cog in ("cogs.invite", "cogs.status"):
            try:
                await self.load_extension(cog)
            except commands.ExtensionError as e:
                logger.error(f"Failed to load {cog}: {e}", exc_info=e)

    @tasks.loop(minutes=30)
    async def refresh_invites(self):
        for guild in self.guilds:
            await self.tracker.refresh(GuildInviteSource(guild))

    @refresh_invites.before_loop
    async def before_refresh_invites(self):
        await self.wait_until_ready()

    async def on_ready(self):
        await self.event_handler.on_ready()

    async def on_guild_join(self, guild):
        await self.event_handler.on_guild_join(guild)

    async def on_guild_remove(self, guild):
        await self.event_handler.on_guild_remove(guild)

    async def on_command_error(self, ctx, error):
        await self.event_handler.on_command_error(ctx, error)

    async def close(self):
        logger.info("🛑 Shutting down...")

        if self.refresh_invites.is_running():
            self.refresh_invites.cancel()

        if self.web_runner:
            await self.web_runner.cleanup()

        if self.session and not self.session.closed:
            await self.session.close()

        await super().close()
        logger.info("✅ Shutdown complete")

    def uptime_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()

