"""
Core entities - Domain objects for RPC health tracking.

These objects are plain, immutable data holders. They know how to convert
themselves to the JSON wire format but nothing about transport or storage.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple, Union

# Status of a single probe: chain height on success, error label otherwise
Status = Union[int, str]

TIMEOUT_STATUS = "timeout"
MAX_ERROR_LENGTH = 100

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Endpoint:
    """
    A monitored RPC endpoint.

    Attributes:
        chain: Chain identifier (e.g. "eth")
        name: Node name, unique within its chain
        target: RPC URL
    """

    chain: str
    name: str
    target: str


@dataclass(frozen=True)
class Sample:
    """
    One timestamped probe outcome.

    Attributes:
        timestamp: Seconds since epoch, shared by every sample of a sweep
        status: Observed chain height, or an error label
    """

    timestamp: int
    status: Status

    @property
    def is_error(self) -> bool:
        return is_error_status(self.status)

    def to_dict(self) -> Dict[str, Any]:
        return {"ts": self.timestamp, "status": self.status}


# Ordered mapping chain -> endpoints, in configuration order
Registry = Dict[str, List[Endpoint]]


def is_error_status(status: Any) -> bool:
    """
    Tell whether a status value represents a failed probe.

    Anything that is not a finite number counts as an error, including
    the "timeout" sentinel and booleans.
    """
    if isinstance(status, bool):
        return True
    if isinstance(status, int):
        return False
    if isinstance(status, float):
        return not math.isfinite(status)
    return True


def iter_endpoints(registry: Registry) -> Iterator[Tuple[str, Endpoint]]:
    """Yield (chain, endpoint) pairs in registry order."""
    for chain, endpoints in registry.items():
        for endpoint in endpoints:
            yield chain, endpoint


def format_error_label(error: Any) -> str:
    """
    Turn an exception or message into a status label.

    Whitespace runs are collapsed to single spaces and the label is cut
    to MAX_ERROR_LENGTH characters.
    """
    label = _WHITESPACE.sub(" ", str(error)).strip()
    return (label or type(error).__name__)[:MAX_ERROR_LENGTH]
