"""
JSON-RPC prober - Fetches the current block height of an EVM endpoint.

This adapter implements the Prober port with a JSON-RPC eth_blockNumber
call over requests. One session is kept per target so connections are
reused across sweeps.
"""

import logging
import queue
import threading
from typing import Any, Dict

import requests  # type: ignore

from rpc_monitor.core.entities import (
    TIMEOUT_STATUS,
    Endpoint,
    Status,
    format_error_label,
)
from rpc_monitor.core.errors import ProbeFailure, ProbeTimeout
from rpc_monitor.core.ports import Prober

logger = logging.getLogger(__name__)


class AdapterJsonRpcProber(Prober):
    """
    Adapter that implements Prober with a JSON-RPC eth_blockNumber request.

    The whole request is bounded by `timeout` seconds of wall-clock time.
    Each request runs on its own daemon thread. When the budget runs out
    the request is abandoned: it keeps running until the transport gives
    up, its result is ignored, and it never delays later probes.
    """

    method = "eth_blockNumber"

    def __init__(self, timeout: float = 10.0):
        """
        Initialize the prober.

        Args:
            timeout: Time budget per probe in seconds
        """
        self.timeout = timeout
        self._sessions: Dict[str, requests.Session] = {}
        self._sessions_lock = threading.Lock()
        self._closed = False

    def probe(self, endpoint: Endpoint) -> Status:
        """
        Probe an endpoint.

        Args:
            endpoint: Endpoint to probe

        Returns:
            Block height, "timeout", or a truncated error label
        """
        try:
            if self._closed:
                raise ProbeFailure("prober is closed")
            return self._run_with_budget(endpoint)
        except ProbeTimeout:
            logger.warning(
                "Probe of %s - %s timed out after %ss",
                endpoint.chain,
                endpoint.name,
                self.timeout,
            )
            return TIMEOUT_STATUS
        except Exception as e:  # pylint: disable=broad-except
            label = format_error_label(e)
            logger.warning(
                "Probe of %s - %s failed: %s", endpoint.chain, endpoint.name, label
            )
            return label

    def close(self) -> None:
        """Close every cached session; later probes report an error."""
        self._closed = True
        with self._sessions_lock:
            for session in self._sessions.values():
                session.close()
            self._sessions.clear()

    def session_for(self, target: str) -> requests.Session:
        """Return the long-lived session of a target, creating it on first use."""
        with self._sessions_lock:
            session = self._sessions.get(target)
            if session is None:
                session = requests.Session()
                session.headers.update({"Content-Type": "application/json"})
                self._sessions[target] = session
                logger.debug("Created session for %s", target)
            return session

    def _run_with_budget(self, endpoint: Endpoint) -> int:
        # One slot per request: an abandoned worker can still put its late
        # result without blocking
        outcome: "queue.Queue[Any]" = queue.Queue(maxsize=1)

        def worker() -> None:
            try:
                outcome.put((True, self._fetch_height(endpoint.target)))
            except Exception as e:  # pylint: disable=broad-except
                outcome.put((False, e))

        thread = threading.Thread(
            target=worker,
            name=f"rpc-probe-{endpoint.chain}-{endpoint.name}",
            daemon=True,
        )
        thread.start()
        try:
            ok, value = outcome.get(timeout=self.timeout)
        except queue.Empty:
            raise ProbeTimeout(TIMEOUT_STATUS)
        if not ok:
            raise value
        return value

    def _fetch_height(self, target: str) -> int:
        payload = {"jsonrpc": "2.0", "id": 1, "method": self.method, "params": []}
        try:
            response = self.session_for(target).post(
                target, json=payload, timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            raise ProbeTimeout(TIMEOUT_STATUS)
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError:
            raise ProbeFailure(f"invalid JSON response: {response.text[:200]}")

        return parse_block_number(body)


def parse_block_number(body: Any) -> int:
    """
    Extract the block height from a JSON-RPC response body.

    Args:
        body: Decoded JSON-RPC response

    Returns:
        Block height as a non-negative integer

    Raises:
        ProbeFailure: If the response carries an error or no valid result
    """
    if not isinstance(body, dict):
        raise ProbeFailure(f"invalid JSON-RPC response: {body!r}")

    error = body.get("error")
    if error:
        if isinstance(error, dict):
            message = error.get("message") or str(error)
            code = error.get("code")
            if code is not None:
                message = f"{message} (code={code})"
        else:
            message = str(error)
        raise ProbeFailure(message)

    result = body.get("result")
    if not isinstance(result, str):
        raise ProbeFailure(f"invalid block number: {result!r}")
    try:
        height = int(result, 16)
    except ValueError:
        raise ProbeFailure(f"invalid block number: {result!r}")
    if height < 0:
        raise ProbeFailure(f"invalid block number: {result!r}")
    return height

