"""
Health alerts - Edge-triggered alert decision for one endpoint.

An alert fires once when an endpoint enters a run of two consecutive
failed probes, and stays silent until the endpoint recovers and then
fails twice again. Only error vs. non-error matters, not the error text.
"""

from typing import Sequence

from rpc_monitor.core.entities import Sample


def should_alert(history: Sequence[Sample]) -> bool:
    """
    Decide whether the newest sample starts a failing run.

    Args:
        history: Samples of one endpoint, oldest first, with the sample
                 just recorded as the last element

    Returns:
        True when the newest and second-newest samples are errors and the
        third-newest is either missing or healthy
    """
    if len(history) < 2:
        return False

    newest, previous = history[-1], history[-2]
    if not (newest.is_error and previous.is_error):
        return False

    if len(history) < 3:
        return True
    return not history[-3].is_error
