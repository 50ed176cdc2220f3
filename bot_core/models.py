# bot_core/models.py
"""
Data structures shared by the invite tracker:
- invite snapshots as fetched from Discord
- per-inviter statistics
- attribution outcomes for a member join
- refresh outcomes of the snapshot cache

Ids are kept as strings everywhere because that is how they are keyed in
the JSON documents.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union


def _as_id(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _as_int(value, default: Optional[int] = 0) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class InviteRecord:
    """Last known usage metadata of one invite code."""
    code: str
    uses: int = 0
    inviter_id: Optional[str] = None
    channel_id: Optional[str] = None
    max_uses: Optional[int] = None
    created_at: Optional[int] = None  # epoch milliseconds
    expires_at: Optional[int] = None  # epoch milliseconds

    @classmethod
    def from_invite(cls, invite) -> "InviteRecord":
        """Build a record from a ``discord.Invite``."""
        inviter = getattr(invite, "inviter", None)
        channel = getattr(invite, "channel", None)
        created = getattr(invite, "created_at", None)
        expires = getattr(invite, "expires_at", None)
        return cls(
            code=invite.code,
            uses=invite.uses or 0,
            inviter_id=_as_id(inviter.id) if inviter else None,
            channel_id=_as_id(channel.id) if channel else None,
            max_uses=invite.max_uses or None,
            created_at=int(created.timestamp() * 1000) if created else None,
            expires_at=int(expires.timestamp() * 1000) if expires else None,
        )

    @classmethod
    def from_dict(cls, code: str, data: dict) -> "InviteRecord":
        if not isinstance(data, dict):
            # very old caches stored bare use counts
            return cls(code=code, uses=max(0, _as_int(data)))
        return cls(
            code=code,
            uses=max(0, _as_int(data.get("uses"))),
            inviter_id=_as_id(data.get("inviterId")),
            channel_id=_as_id(data.get("channelId")),
            max_uses=_as_int(data.get("maxUses"), None),
            created_at=_as_int(data.get("createdTimestamp"), None),
            expires_at=_as_int(data.get("expiresAt"), None),
        )

    def to_dict(self) -> dict:
        return {
            "uses": self.uses,
            "inviterId": self.inviter_id,
            "channelId": self.channel_id,
            "maxUses": self.max_uses,
            "createdTimestamp": self.created_at,
            "expiresAt": self.expires_at,
        }


@dataclass
class InviterStats:
    """Counters credited to one inviter in one guild."""
    joins: int = 0
    leaves: int = 0
    bonus: int = 0
    last_invite_code: Optional[str] = None

    @property
    def total(self) -> int:
        return self.joins - self.leaves + self.bonus

    @classmethod
    def from_dict(cls, data: dict) -> "InviterStats":
        if not isinstance(data, dict):
            return cls()
        return cls(
            joins=max(0, _as_int(data.get("joins"))),
            leaves=max(0, _as_int(data.get("leaves"))),
            bonus=_as_int(data.get("bonus")),
            last_invite_code=data.get("lastInviteCode") or None,
        )

    def to_dict(self) -> dict:
        return {
            "joins": self.joins,
            "leaves": self.leaves,
            "bonus": self.bonus,
            "lastInviteCode": self.last_invite_code,
        }


# ---------- attribution outcomes ----------

@dataclass(frozen=True)
class MatchedInvite:
    code: str
    inviter_id: Optional[str]
    channel_id: Optional[str]
    uses: int
    max_uses: Optional[int] = None
    expires_at: Optional[int] = None

    @classmethod
    def from_record(cls, record: InviteRecord) -> "MatchedInvite":
        return cls(
            code=record.code,
            inviter_id=record.inviter_id,
            channel_id=record.channel_id,
            uses=record.uses,
            max_uses=record.max_uses,
            expires_at=record.expires_at,
        )


@dataclass(frozen=True)
class MatchedVanity:
    """Member came through the guild's vanity URL; nobody is credited."""
    uses: Optional[int] = None


@dataclass(frozen=True)
class Inconclusive:
    reason: str = "no invite usage changed"


AttributionResult = Union[MatchedInvite, MatchedVanity, Inconclusive]


# ---------- snapshot refresh outcomes ----------

class RefreshStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"  # no Manage Server permission
    FAILED = "failed"    # network / rate limit, stale cache kept


@dataclass
class RefreshResult:
    status: RefreshStatus
    invites: Dict[str, InviteRecord] = field(default_factory=dict)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is RefreshStatus.OK
