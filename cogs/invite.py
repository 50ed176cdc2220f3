# cogs/invite.py
# Description: Invite tracking listeners and the invite stat commands

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import discord
from discord import app_commands
from discord.ext import commands

from bot_core.config import Config
from bot_core.models import (
    AttributionResult,
    InviteRecord,
    InviterStats,
    MatchedInvite,
    MatchedVanity,
)
from bot_core.source import GuildInviteSource

logger = logging.getLogger('InviteBot')

MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


def describe_join(member: discord.Member, result: AttributionResult) -> str:
    lines = [f"👤 **Member:** {member.mention}"]
    if isinstance(result, MatchedInvite):
        inviter = f"<@{result.inviter_id}>" if result.inviter_id else "`Unknown`"
        channel = f"<#{result.channel_id}>" if result.channel_id else "`Unknown`"
        lines += [
            f"🔗 **Invite Code:** `{result.code}`",
            f"👑 **Inviter:** {inviter}",
            f"#️⃣ **Channel:** {channel}",
            f"♻️ **Uses:** {result.uses}/{result.max_uses or '∞'}",
        ]
        if result.expires_at:
            lines.append(f"⏰ **Expires:** <t:{result.expires_at // 1000}:R>")
    elif isinstance(result, MatchedVanity):
        lines.append("✨ Used the vanity URL invite.")
    else:
        lines.append("❓ Could not determine which invite was used.")
    return "\n".join(lines)


def leaderboard_lines(entries: List[Tuple[str, int]], start: int = 1) -> List[str]:
    lines = []
    for place, (user_id, total) in enumerate(entries, start=start):
        medal = MEDALS.get(place, f"#{place}")
        lines.append(f"{medal} <@{user_id}> — **{total}** invites")
    return lines


def find_named_channel(channels, name: str) -> Optional[discord.TextChannel]:
    """First channel whose name matches ``name``, ignoring case."""
    wanted = name.lower()
    return discord.utils.find(lambda ch: ch.name.lower() == wanted, channels)


class InviteLeaderboardView(discord.ui.View):
    def __init__(self, entries: List[Tuple[str, int]], guild_name: str, items_per_page: int = 10):
        super().__init__(timeout=120)
        self.entries = entries
        self.guild_name = guild_name
        self.items_per_page = items_per_page
        self.current_page = 0
        self.message = None
        self.update_buttons()

    @property
    def total_pages(self) -> int:
        return max(1, (len(self.entries) - 1) // self.items_per_page + 1)

    def update_buttons(self):
        self.previous_page.disabled = self.current_page == 0
        self.next_page.disabled = self.current_page >= self.total_pages - 1

    def create_embed(self) -> discord.Embed:
        start = self.current_page * self.items_per_page
        page = self.entries[start:start + self.items_per_page]

        embed = discord.Embed(
            title="🏆 Invite Leaderboard",
            description="\n".join(leaderboard_lines(page, start=start + 1)),
            color=Config.THEME_COLOR,
            timestamp=datetime.now(timezone.utc)
        )
        footer = f"Top {len(self.entries)} • Server: {self.guild_name}"
        if self.total_pages > 1:
            footer += f" • Page {self.current_page + 1}/{self.total_pages}"
        embed.set_footer(text=footer)
        return embed

    async def on_timeout(self):
        for item in self.children:
            item.disabled = True
        if self.message:
            try:
                await self.message.edit(view=self)
            except discord.HTTPException:
                pass

    @discord.ui.button(emoji="⬅️", style=discord.ButtonStyle.gray)
    async def previous_page(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.current_page = max(0, self.current_page - 1)
        self.update_buttons()
        await interaction.response.edit_message(embed=self.create_embed(), view=self)

    @discord.ui.button(emoji="➡️", style=discord.ButtonStyle.gray)
    async def next_page(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.current_page = min(self.total_pages - 1, self.current_page + 1)
        self.update_buttons()
        await interaction.response.edit_message(embed=self.create_embed(), view=self)


class InviteCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot
        self.tracker = bot.tracker

    def get_log_channel(self, guild: discord.Guild) -> Optional[discord.TextChannel]:
        channel_id = self.tracker.log_channel_id(guild.id)
        if channel_id:
            return guild.get_channel(int(channel_id))
        return find_named_channel(guild.text_channels, Config.LOG_CHANNEL_NAME)

    async def send_log(self, guild: discord.Guild, embed: discord.Embed):
        channel = self.get_log_channel(guild)
        if channel is None:
            return
        if not channel.permissions_for(guild.me).send_messages:
            return
        try:
            await channel.send(embed=embed)
        except discord.HTTPException as e:
            logger.warning(f"[{guild.name}] Could not send invite log: {e}")

    # ---------- listeners ----------

    @commands.Cog.listener()
    async def on_invite_create(self, invite: discord.Invite):
        if invite.guild is None:
            return
        self.tracker.on_invite_create(invite.guild.id, InviteRecord.from_invite(invite))

    @commands.Cog.listener()
    async def on_invite_delete(self, invite: discord.Invite):
        if invite.guild is None:
            return
        self.tracker.on_invite_delete(invite.guild.id, invite.code)

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member):
        guild = member.guild
        result = await self.tracker.on_join(GuildInviteSource(guild), member.id)

        try:
            embed = discord.Embed(
                description=describe_join(member, result),
                color=Config.THEME_COLOR,
                timestamp=datetime.now(timezone.utc)
            )
            embed.set_author(name=f"{member} joined", icon_url=member.display_avatar.url)
            embed.set_thumbnail(url=member.display_avatar.url)
            if isinstance(result, MatchedInvite):
                embed.set_footer(text=f"Invite used: {result.code}")
            await self.send_log(guild, embed)
        except Exception as e:
            logger.error(f"[{guild.name}] Error logging join of {member.id}: {e}", exc_info=e)

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member):
        guild = member.guild
        inviter_id = await self.tracker.on_leave(guild.id, member.id)

        try:
            lines = [f"👤 **Member:** {member.mention}"]
            if inviter_id:
                total = self.tracker.get_stats(guild.id, inviter_id).total
                lines.append(f"👑 **Invited by:** <@{inviter_id}> (now **{total}** invites)")
            else:
                lines.append("❓ Inviter unknown.")

            embed = discord.Embed(
                description="\n".join(lines),
                color=discord.Color.orange(),
                timestamp=datetime.now(timezone.utc)
            )
            embed.set_author(name=f"{member} left", icon_url=member.display_avatar.url)
            await self.send_log(guild, embed)
        except Exception as e:
            logger.error(f"[{guild.name}] Error logging leave of {member.id}: {e}", exc_info=e)

    # ---------- commands ----------

    @commands.hybrid_command(name="setinvitelog", description="Set the channel for invite logs")
    @app_commands.describe(channel="Text channel for logs")
    @app_commands.default_permissions(manage_guild=True)
    @commands.has_permissions(manage_guild=True)
    @commands.guild_only()
    async def setinvitelog(self, ctx, channel: discord.TextChannel):
        self.tracker.set_log_channel(ctx.guild.id, channel.id)
        await ctx.send(f"✅ Invite logs channel set to {channel.mention}.", ephemeral=True)

    @commands.hybrid_command(name="invites", description="Show invite stats (no user = yourself)")
    @app_commands.describe(user="Optional: choose a user")
    @commands.guild_only()
    async def invites(self, ctx, user: Optional[discord.Member] = None):
        user = user or ctx.author
        stats: InviterStats = self.tracker.get_stats(ctx.guild.id, user.id)
        code = f"`{stats.last_invite_code}`" if stats.last_invite_code else "–"

        embed = discord.Embed(
            title="Invite Statistics",
            color=Config.THEME_COLOR,
            timestamp=datetime.now(timezone.utc)
        )
        embed.set_author(name=str(user), icon_url=user.display_avatar.url)
        embed.add_field(name="📊 Total", value=f"**{stats.total}**", inline=True)
        embed.add_field(name="✅ Joins", value=str(stats.joins), inline=True)
        embed.add_field(name="❌ Left", value=str(stats.leaves), inline=True)
        embed.add_field(name="🎁 Bonus", value=str(stats.bonus), inline=True)
        embed.add_field(name="🔗 Last Used Code", value=code, inline=True)
        if not (stats.joins or stats.leaves or stats.bonus):
            embed.description = "No invite statistics yet."

        await ctx.send(embed=embed)

    @commands.hybrid_command(name="avatar", description="Show the avatar of a user (no user = yourself)")
    @app_commands.describe(user="Optional: choose a user")
    async def avatar(self, ctx, user: Optional[discord.User] = None):
        user = user or ctx.author
        url = user.display_avatar.replace(size=1024).url

        embed = discord.Embed(
            title="Avatar",
            color=Config.THEME_COLOR,
            timestamp=datetime.now(timezone.utc)
        )
        embed.set_author(name=str(user), icon_url=user.display_avatar.url)
        embed.set_image(url=url)
        embed.set_footer(text=f"User ID: {user.id}")

        await ctx.send(embed=embed)

    @commands.hybrid_command(name="lb", description="Leaderboard: most invites (optional amount)")
    @app_commands.describe(amount="How many positions (3–25, default 10)")
    @commands.guild_only()
    async def lb(self, ctx, amount: Optional[app_commands.Range[int, 3, 25]] = None):
        amount = Config.clamp_leaderboard(amount)
        entries = self.tracker.leaderboard(ctx.guild.id, amount)

        if not entries:
            await ctx.send("No invite statistics available yet.", ephemeral=True)
            return

        view = InviteLeaderboardView(entries, ctx.guild.name)
        view.message = await ctx.send(embed=view.create_embed(), view=view)

    @commands.hybrid_command(name="bonus", description="Add or remove bonus invites for a user")
    @app_commands.describe(user="Who gets the bonus", amount="Invites to add (negative to remove)")
    @app_commands.default_permissions(manage_guild=True)
    @commands.has_permissions(manage_guild=True)
    @commands.guild_only()
    async def bonus(self, ctx, user: discord.Member, amount: int):
        if amount == 0:
            await ctx.send("Amount must not be zero.", ephemeral=True)
            return

        stats = self.tracker.adjust_bonus(ctx.guild.id, user.id, amount)
        verb = "Added" if amount > 0 else "Removed"
        await ctx.send(
            f"✅ {verb} **{abs(amount)}** bonus invites {'to' if amount > 0 else 'from'} {user.mention}. "
            f"New total: **{stats.total}**",
            ephemeral=True
        )

        embed = discord.Embed(
            description=f"🎁 {ctx.author.mention} adjusted {user.mention}'s bonus by **{amount:+d}** (total **{stats.total}**)",
            color=discord.Color.gold(),
            timestamp=datetime.now(timezone.utc)
        )
        await self.send_log(ctx.guild, embed)


async def setup(bot):
    await bot.add_cog(InviteCog(bot))
