"""
Exceptions and HTTP exception helpers shared by routes and the relay.

Usage:
    from workspace_chat.utils.exceptions import raise_bad_request

    raise_bad_request("Messages are required")
"""

from typing import NoReturn, Optional

from fastapi import HTTPException, status


class StreamAbortedError(Exception):
    """Upstream provider stream ended with an error.

    Before the first frame the chat route answers 500. Once streaming has
    started there is no error frame, so this propagates out of the response
    body generator and the connection is dropped without [DONE].
    """

    def __init__(self, provider: str, message: Optional[str] = None):
        self.provider = provider
        self.message = message or "stream aborted"
        super().__init__(f"{provider}: {self.message}")


class ProviderNotConfiguredError(Exception):
    """No upstream client exists for the requested provider (missing API key)."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Provider '{provider}' is not configured")


def raise_bad_request(detail: str) -> NoReturn:
    """Raise HTTP 400 Bad Request."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def raise_internal_error(detail: str = "Internal server error") -> NoReturn:
    """Raise HTTP 500 Internal Server Error."""
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )
