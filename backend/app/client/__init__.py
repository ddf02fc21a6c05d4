from app.client.agent import ConnectionStatus, SyncAgent  # noqa: F401
from app.client.transport import Transport, TransportFactory, WebSocketTransport, websocket_transport  # noqa: F401
