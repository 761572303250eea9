"""Remote gateway for the drivers API."""

from daybook.remote.gateway import RemoteGateway
from daybook.remote.factories import create_remote_gateway

__all__ = ["RemoteGateway", "create_remote_gateway"]
