# bot_core/events.py
import logging
from datetime import datetime, timezone

import discord
from discord import app_commands
from discord.ext import commands

from .config import Config
from .models import RefreshStatus
from .source import GuildInviteSource

logger = logging.getLogger('InviteBot')


class EventHandler:
    def __init__(self, bot):
        self.bot = bot

    async def on_ready(self):
        logger.info(f"🤖 Logged in as {self.bot.user} (ID: {self.bot.user.id})")
        logger.info(f"📊 {len(self.bot.guilds)} servers | {sum(g.member_count or 0 for g in self.bot.guilds):,} users")

        await self.sync_commands()
        await self.set_username()

        cached = 0
        for guild in self.bot.guilds:
            result = await self.bot.tracker.refresh(GuildInviteSource(guild))
            if result.status is RefreshStatus.OK:
                cached += 1
            elif result.status is RefreshStatus.SKIPPED:
                logger.info(f"[{guild.name}] Missing Manage Server, invites not tracked")
        logger.info(f"📨 Cached invites for {cached}/{len(self.bot.guilds)} servers")

    async def sync_commands(self):
        try:
            if Config.GUILD_ID:
                guild = discord.Object(id=int(Config.GUILD_ID))
                self.bot.tree.copy_global_to(guild=guild)
                synced = await self.bot.tree.sync(guild=guild)
                logger.info(f"🔄 Synced {len(synced)} commands to guild {Config.GUILD_ID}")
            else:
                synced = await self.bot.tree.sync()
                logger.info(f"🔄 Synced {len(synced)} global commands (may take up to 1 hour to appear)")
        except (discord.HTTPException, ValueError) as e:
            logger.error(f"❌ Failed to sync commands: {e}")

    async def set_username(self):
        wanted = Config.BOT_USERNAME
        if not wanted or self.bot.user.name == wanted:
            return
        try:
            await self.bot.user.edit(username=wanted)
            logger.info(f"✅ Bot name set to \"{wanted}\"")
        except discord.HTTPException as e:
            logger.warning(f"⚠️ Could not change bot name (rate limits/permissions): {e}")

    async def on_guild_join(self, guild):
        logger.info(f"➕ Joined: {guild.name} ({guild.member_count} members)")
        await self.bot.tracker.refresh(GuildInviteSource(guild))
        if Config.GUILD_ID and str(guild.id) == Config.GUILD_ID:
            await self.sync_commands()

    async def on_guild_remove(self, guild):
        logger.info(f"➖ Left: {guild.name}")

    def build_error_embed(self, error) -> discord.Embed:
        error_embed = discord.Embed(
            title="❌ Command Error",
            color=0xFF6B6B,
            timestamp=datetime.now(timezone.utc)
        )
        if isinstance(error, (commands.MissingPermissions, app_commands.MissingPermissions)):
            error_embed.description = "You need **Manage Server** permission to use this command."
        elif isinstance(error, (commands.CheckFailure, app_commands.CheckFailure)):
            error_embed.description = "You don't have permission to use this command"
        elif isinstance(error, (commands.BadArgument, app_commands.TransformerError)):
            error_embed.description = "Invalid argument provided"
        elif isinstance(error, (commands.CommandOnCooldown, app_commands.CommandOnCooldown)):
            error_embed.description = f"Command on cooldown! Try again in {error.retry_after:.1f}s"
        else:
            error_embed.description = "An unexpected error occurred"
        return error_embed

    async def on_command_error(self, ctx, error):
        if isinstance(error, commands.HybridCommandError):
            error = error.original
        if isinstance(error, commands.CommandNotFound):
            return
        if isinstance(error, commands.MissingRequiredArgument):
            await ctx.send(f"Missing required argument: `{error.param.name}`", ephemeral=True)
            return
        if not isinstance(error, (commands.CheckFailure, commands.BadArgument, commands.CommandOnCooldown)):
            logger.error(f"Unhandled error in {ctx.command}: {error}", exc_info=error)
        await ctx.send(embed=self.build_error_embed(error), ephemeral=True)

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        if not isinstance(error, (app_commands.CheckFailure, app_commands.TransformerError, app_commands.CommandOnCooldown)):
            command = interaction.command.name if interaction.command else "unknown"
            logger.error(f"Unhandled error in /{command}: {error}", exc_info=error)

        embed = self.build_error_embed(error)
        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            logger.warning(f"Could not report command error: {e}")
