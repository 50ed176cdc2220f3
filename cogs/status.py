# cogs/status.py
# Description: Keeps one status message alive in the configured channel

import logging

import discord
from discord.ext import commands, tasks

from bot_core.config import Config
from bot_core.views import StatusView, create_status_embed

logger = logging.getLogger('InviteBot')


class StatusCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot
        self.state = bot.tracker.state
        self.view = StatusView(bot)
        self.message = None
        self.missing_warned = False
        if Config.STATUS_CHANNEL_ID.isdigit():
            self.update_status.change_interval(seconds=Config.STATUS_INTERVAL_SECONDS)
            self.update_status.start()

    def cog_unload(self):
        self.update_status.cancel()

    async def fetch_channel(self) -> discord.abc.Messageable:
        channel_id = int(Config.STATUS_CHANNEL_ID)
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        return channel

    async def ensure_status_message(self):
        """Re-point at the saved message, or post a new one and remember it."""
        channel = await self.fetch_channel()
        if not isinstance(channel, discord.TextChannel):
            logger.warning(f"⚠️ Status channel {Config.STATUS_CHANNEL_ID} is not a text channel")
            return None

        ref = self.state.status_ref()
        if ref and ref[0] == str(channel.id):
            try:
                self.message = await channel.fetch_message(int(ref[1]))
                return self.message
            except discord.NotFound:
                pass

        self.message = await channel.send(embed=create_status_embed(self.bot), view=self.view)
        self.state.set_status_ref(channel.id, self.message.id)
        return self.message

    @tasks.loop(seconds=30)
    async def update_status(self):
        try:
            if self.message is None and await self.ensure_status_message() is None:
                return
            await self.message.edit(embed=create_status_embed(self.bot), view=self.view)
            self.missing_warned = False
        except discord.NotFound as e:
            # channel or message gone, retry from scratch next tick
            if not self.missing_warned:
                logger.warning(f"⚠️ Status channel {Config.STATUS_CHANNEL_ID} or its message is missing: {e}")
                self.missing_warned = True
            self.message = None
        except discord.HTTPException as e:
            logger.debug(f"Status update skipped: {e}")

    @update_status.before_loop
    async def before_update_status(self):
        await self.bot.wait_until_ready()


async def setup(bot):
    await bot.add_cog(StatusCog(bot))
