"""
Langfuse tracing client wrapper with graceful degradation.

Uses the Langfuse SDK v3 (OpenTelemetry-based) API. Provides a singleton
client that handles missing credentials and connection failures; every
operation is a no-op when tracing is disabled.
"""

import logging
from typing import Any, Optional

from langfuse import Langfuse

logger = logging.getLogger(__name__)


class TracingClient:
    """
    Langfuse client wrapper with graceful degradation.

    Missing credentials or an unreachable host disable tracing without
    affecting the console itself.
    """

    def __init__(
        self,
        public_key: str = "",
        secret_key: str = "",
        host: str = "",
        debug: bool = False,
    ):
        self._client: Optional[Langfuse] = None
        self._enabled = False
        self._error: Optional[str] = None

        if not public_key or not secret_key:
            self._error = "Langfuse credentials not configured"
            logger.debug(f"Tracing disabled: {self._error}")
            return

        if host and not host.startswith(("http://", "https://")):
            logger.warning(
                f"LANGFUSE_HOST '{host}' may be malformed. "
                "Expected format: http://hostname:port or https://hostname:port."
            )

        try:
            kwargs: dict[str, Any] = {
                "public_key": public_key,
                "secret_key": secret_key,
                "debug": debug,
            }
            if host:
                kwargs["host"] = host
            self._client = Langfuse(**kwargs)

            if not self._client.auth_check():
                self._error = "Langfuse auth_check() failed; check host and credentials"
                logger.warning(f"Tracing disabled: {self._error}")
                self._client = None
                return

            self._enabled = True
            logger.info(f"Langfuse tracing enabled (host: {host or 'default'})")
        except Exception as e:
            self._error = f"Failed to initialize Langfuse client: {e}"
            logger.warning(f"Tracing disabled: {self._error}")
            self._client = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def error(self) -> Optional[str]:
        """Reason tracing is disabled, if any."""
        return self._error

    @property
    def client(self) -> Optional[Langfuse]:
        return self._client

    def flush(self) -> None:
        """Flush any pending events to Langfuse."""
        if not self._enabled or not self._client:
            return
        try:
            self._client.flush()
        except Exception as e:
            logger.warning(f"Failed to flush tracing events: {e}")

    def shutdown(self) -> None:
        """Shutdown the tracing client, flushing any remaining events."""
        if not self._enabled or not self._client:
            return
        try:
            self._client.shutdown()
            logger.info("Langfuse tracing client shutdown complete")
        except Exception as e:
            logger.warning(f"Error during tracing client shutdown: {e}")


# Global singleton instance
_tracing_client: Optional[TracingClient] = None


def init_tracing_client(
    public_key: str = "",
    secret_key: str = "",
    host: str = "",
    debug: bool = False,
) -> TracingClient:
    """Initialize the global tracing client singleton."""
    global _tracing_client
    _tracing_client = TracingClient(
        public_key=public_key,
        secret_key=secret_key,
        host=host,
        debug=debug,
    )
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    """Get the global tracing client instance."""
    return _tracing_client


def shutdown_tracing() -> None:
    """Shutdown the global tracing client."""
    global _tracing_client
    if _tracing_client:
        _tracing_client.shutdown()
        _tracing_client = None
