from .broadcaster import Broadcaster
from .hub import RealtimeHub, Session

__all__ = ["Broadcaster", "RealtimeHub", "Session"]
