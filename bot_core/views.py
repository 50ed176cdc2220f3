# bot_core/views.py
# Live status embed and its control buttons

import platform
from datetime import datetime, timezone

import discord
import psutil

from .config import Config


def format_uptime(seconds: float) -> str:
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def safe_latency_ms(bot) -> int:
    latency = bot.latency
    if latency is None or latency != latency or latency == float("inf"):
        return 0
    return max(0, round(latency * 1000))


def create_status_embed(bot) -> discord.Embed:
    name = bot.user.name if bot.user else "Invite Tracker"
    process = psutil.Process()
    memory_mb = process.memory_info().rss / (1024 * 1024)

    embed = discord.Embed(
        title=f"🕒 {name} Status",
        description="**Active:** ✅ Online",
        color=Config.THEME_COLOR,
        timestamp=datetime.now(timezone.utc)
    )
    embed.add_field(name="Uptime", value=f"`{format_uptime(bot.uptime_seconds())}`", inline=True)
    embed.add_field(name="Ping", value=f"{safe_latency_ms(bot)} ms", inline=True)
    embed.add_field(name="Servers", value=f"{len(bot.guilds):,}", inline=True)
    embed.add_field(name="Memory", value=f"{memory_mb:.1f} MB", inline=True)
    embed.set_footer(text=f"Live updated every {Config.STATUS_INTERVAL_SECONDS}s")
    return embed


class StatusView(discord.ui.View):
    def __init__(self, bot):
        super().__init__(timeout=None)
        self.bot = bot

    @discord.ui.button(label="System Status", style=discord.ButtonStyle.primary, emoji="📊")
    async def system_status(self, interaction: discord.Interaction, button: discord.ui.Button):
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')

        embed = discord.Embed(
            title="🖥️ System Status",
            color=discord.Color.blue(),
            timestamp=datetime.now(timezone.utc)
        )
        embed.add_field(name="CPU Usage", value=f"{psutil.cpu_percent(interval=None)}%", inline=True)
        embed.add_field(name="RAM Usage", value=f"{memory.percent}%", inline=True)
        embed.add_field(name="Disk Usage", value=f"{disk.percent}%", inline=True)
        embed.add_field(name="Python Version", value=platform.python_version(), inline=True)
        embed.add_field(name="Discord.py", value=discord.__version__, inline=True)
        embed.add_field(name="Platform", value=platform.system(), inline=True)

        await interaction.response.send_message(embed=embed, ephemeral=True)

    @discord.ui.button(label="Refresh", style=discord.ButtonStyle.secondary, emoji="🔄")
    async def refresh(self, interaction: discord.Interaction, button: discord.ui.Button):
        await interaction.response.edit_message(embed=create_status_embed(self.bot), view=self)
