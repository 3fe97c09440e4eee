"""
Live: session 存储、受众投影与房间推送
"""
from surtitle.live.hub import ROLE_CONTROL, ROLE_VIEWER, BroadcastHub
from surtitle.live.service import SessionService
from surtitle.live.store import SessionStore

__all__ = ["BroadcastHub", "ROLE_CONTROL", "ROLE_VIEWER", "SessionService", "SessionStore"]
