from .server import create_app, SeekRequest, SpeedRequest, WebSocketBroadcaster

__all__ = ["create_app", "SeekRequest", "SpeedRequest", "WebSocketBroadcaster"]
