# bot_core/state.py
# In-memory copy of every document, built once at startup.
# All writes back to disk go through TrackerState.persist().

import logging
from typing import Dict, Optional, Tuple

from .database import CONFIG, INVITES, MEMBERS, STATS, STATUS, DatabaseHandler
from .errors import PersistenceError
from .migrations import split_legacy_totals
from .models import InviteRecord, InviterStats

logger = logging.getLogger('InviteBot')


class TrackerState:
    def __init__(self, store: DatabaseHandler):
        self.store = store
        self.invites: Dict[str, Dict[str, InviteRecord]] = {}
        self.config: Dict[str, str] = {}
        self.stats: Dict[str, Dict[str, InviterStats]] = {}
        self.members: Dict[str, Dict[str, str]] = {}
        self.status: dict = {}

    @classmethod
    def load(cls, store: DatabaseHandler) -> "TrackerState":
        state = cls(store)

        state.invites = {
            str(guild_id): {
                str(code): InviteRecord.from_dict(str(code), data)
                for code, data in codes.items()
            }
            for guild_id, codes in store.load(INVITES).items()
            if isinstance(codes, dict)
        }

        state.config = {
            str(guild_id): str(channel_id)
            for guild_id, channel_id in store.load(CONFIG).items()
            if channel_id
        }

        raw_stats = store.load(STATS)
        split_legacy_totals(raw_stats)
        state.stats = {
            str(guild_id): {
                str(user_id): InviterStats.from_dict(record)
                for user_id, record in users.items()
            }
            for guild_id, users in raw_stats.items()
        }

        state.members = {
            str(guild_id): {
                str(member_id): str(inviter_id)
                for member_id, inviter_id in index.items()
                if inviter_id
            }
            for guild_id, index in store.load(MEMBERS).items()
            if isinstance(index, dict)
        }

        state.status = store.load(STATUS)
        return state

    def serialize(self, key: str) -> dict:
        if key == INVITES:
            return {
                guild_id: {code: record.to_dict() for code, record in codes.items()}
                for guild_id, codes in self.invites.items()
            }
        if key == STATS:
            return {
                guild_id: {user_id: stats.to_dict() for user_id, stats in users.items()}
                for guild_id, users in self.stats.items()
            }
        if key == CONFIG:
            return dict(self.config)
        if key == MEMBERS:
            return {guild_id: dict(index) for guild_id, index in self.members.items()}
        if key == STATUS:
            return dict(self.status)
        raise KeyError(key)

    def persist(self, key: str) -> bool:
        """Write one document. Failures are logged; memory stays authoritative
        and the next mutation rewrites the whole document again."""
        try:
            self.store.save(key, self.serialize(key))
            return True
        except PersistenceError as e:
            logger.error(f"Persistence failure, keeping in-memory state: {e}")
            return False

    # ---------- config ----------

    def log_channel_id(self, guild_id) -> Optional[str]:
        return self.config.get(str(guild_id))

    def set_log_channel(self, guild_id, channel_id):
        self.config[str(guild_id)] = str(channel_id)
        self.persist(CONFIG)

    # ---------- live status ----------

    def status_ref(self) -> Optional[Tuple[str, str]]:
        channel_id = self.status.get("channelId")
        message_id = self.status.get("messageId")
        if channel_id and message_id:
            return str(channel_id), str(message_id)
        return None

    def set_status_ref(self, channel_id, message_id):
        self.status = {"channelId": str(channel_id), "messageId": str(message_id)}
        self.persist(STATUS)
