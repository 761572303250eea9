"""Factory functions for creating remote gateway instances."""

import os
from typing import Optional

from daybook.remote.gateway import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, RemoteGateway


def create_remote_gateway(base_url: Optional[str] = None, token: Optional[str] = None) -> RemoteGateway:
    """Create a RemoteGateway.

    Args:
        base_url: API base URL. If None, checks DAYBOOK_API_URL environment
            variable, then falls back to the production API
        token: Optional bearer token

    Returns:
        RemoteGateway instance

    Raises:
        ValueError: If DAYBOOK_API_TIMEOUT is not a positive number
    """
    if base_url is None:
        base_url = os.environ.get("DAYBOOK_API_URL", DEFAULT_BASE_URL)

    timeout = DEFAULT_TIMEOUT
    timeout_env = os.environ.get("DAYBOOK_API_TIMEOUT")
    if timeout_env:
        try:
            timeout = float(timeout_env)
        except ValueError as e:
            raise ValueError(f"Invalid DAYBOOK_API_TIMEOUT '{timeout_env}'") from e
        if timeout <= 0:
            raise ValueError(f"Invalid DAYBOOK_API_TIMEOUT '{timeout_env}'")

    return RemoteGateway(base_url=base_url, token=token, timeout=timeout)
