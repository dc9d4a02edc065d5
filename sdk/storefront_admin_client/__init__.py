"""Python client for the storefront admin session API"""
from storefront_admin_client.client import (
    AdminClientError,
    AdminSessionClient,
    LoginRejectedError,
)
from storefront_admin_client.poller import PollOutcome, SessionPoller

__version__ = "0.1.0"
__all__ = [
    "AdminClientError",
    "AdminSessionClient",
    "LoginRejectedError",
    "PollOutcome",
    "SessionPoller",
]
