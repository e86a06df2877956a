from janus_gateway.transport.base import AdminTransport, Transport

__all__ = ["AdminTransport", "Transport"]
