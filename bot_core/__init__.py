from .bot import InviteBot
from .views import StatusView
from .logger import setup_logging
from .database import DatabaseHandler
from .events import EventHandler
from .tracker import InviteTracker

__all__ = ['InviteBot', 'StatusView', 'setup_logging', 'DatabaseHandler', 'EventHandler', 'InviteTracker']
