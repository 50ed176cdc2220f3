# bot_core/database.py
# JSON document store: one file per key, whole-file rewrites

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from .errors import PersistenceError

logger = logging.getLogger('InviteBot')

INVITES = "invites"   # guild -> {code: invite snapshot}
CONFIG = "config"     # guild -> log channel id
STATS = "stats"       # guild -> {user: joins/leaves/bonus}
MEMBERS = "members"   # guild -> {member: inviter}
STATUS = "status"     # live status message reference
META = "meta"         # schema version

DOCUMENTS = (INVITES, CONFIG, STATS, MEMBERS, STATUS, META)


class DatabaseHandler:
    def __init__(self, data_dir: Union[str, Path] = "data"):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def ensure_files(self):
        """Create the data directory and any missing document."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for key in DOCUMENTS:
            path = self.path_for(key)
            if not path.exists():
                try:
                    self.save(key, {})
                except PersistenceError as e:
                    logger.warning(f"Could not create {path}: {e}")

    def load(self, key: str) -> dict:
        """Read a document. Missing or unreadable documents load as {}."""
        path = self.path_for(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Resetting unreadable document {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Resetting {path}: expected an object, got {type(data).__name__}")
            return {}
        return data

    def save(self, key: str, data: dict):
        """Replace a document atomically. Raises PersistenceError on failure."""
        path = self.path_for(key)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(key, e) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
