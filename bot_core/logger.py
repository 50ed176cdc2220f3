# bot_core/logger.py
import asyncio
import logging
import sys
import traceback
from datetime import datetime, timezone

import aiohttp
import discord


class WebhookHandler(logging.Handler):
    """Forwards WARNING and above to a Discord webhook, rate limited."""

    def __init__(self, webhook_url=None):
        super().__init__(level=logging.WARNING)
        self.webhook_url = webhook_url
        self.session = None
        self.last_sent = []
        self.rate_limit_window = 60
        self.max_messages_per_window = 10
        self.error_counts = {}
        self.max_repeats = 3
        self.ignored_errors = [
            "SSL handshake failed",
            "10054",
            "10053",
            "An existing connection was forcibly closed",
        ]

    def should_send(self, record) -> bool:
        if not self.webhook_url or not self.session or self.session.closed:
            return False

        message = record.getMessage()
        if any(ignored in message for ignored in self.ignored_errors):
            return False

        now = datetime.now(timezone.utc).timestamp()
        window_start = now - self.rate_limit_window
        self.last_sent = [t for t in self.last_sent if t > window_start]
        if len(self.last_sent) >= self.max_messages_per_window:
            return False

        # same call site spamming the channel
        error_key = f"{record.pathname}:{record.lineno}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1
        if self.error_counts[error_key] > self.max_repeats:
            return False

        self.last_sent.append(now)
        return True

    def build_embed(self, record) -> discord.Embed:
        color = {
            'ERROR': 0xFF0000,
            'WARNING': 0xFFA500,
            'CRITICAL': 0x8B0000
        }.get(record.levelname, 0x808080)

        embed = discord.Embed(
            title=f"⚠️ {record.levelname}",
            description=f"```{record.getMessage()[:1000]}```",
            color=color,
            timestamp=datetime.now(timezone.utc)
        )
        if record.exc_info:
            exc_text = ''.join(traceback.format_exception(*record.exc_info))
            embed.add_field(name="Exception", value=f"```{exc_text[-1000:]}```", inline=False)
        return embed

    async def send_to_webhook(self, embed: discord.Embed):
        try:
            webhook = discord.Webhook.from_url(self.webhook_url, session=self.session)
            await webhook.send(embed=embed)
        except (discord.HTTPException, aiohttp.ClientError, ValueError):
            # never log from inside the log handler
            pass

    def emit(self, record):
        try:
            if not self.should_send(record):
                return
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # no running loop, e.g. during shutdown
        try:
            loop.create_task(self.send_to_webhook(self.build_embed(record)))
        except Exception:
            self.handleError(record)


webhook_handler = WebhookHandler()


def setup_logging(level=logging.INFO, log_file='bot.log'):
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    class SSLFilter(logging.Filter):
        def filter(self, record):
            return not any(x in str(record.msg) for x in ["SSL", "10054", "10053"])

    file_handler.addFilter(SSLFilter())
    webhook_handler.addFilter(SSLFilter())

    logging.basicConfig(
        level=level,
        handlers=[file_handler, console_handler, webhook_handler],
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logging.getLogger('discord').setLevel(logging.WARNING)
    logging.getLogger('discord.gateway').setLevel(logging.ERROR)
    logging.getLogger('discord.http').setLevel(logging.ERROR)
    logging.getLogger('aiohttp.access').setLevel(logging.WARNING)

    return logging.getLogger('InviteBot')
