"""Utility functions for tests."""

import datetime
import json
from typing import Any, Sequence

from tidewise.types import HarmonicConstant, TideEvent, TideInfo


def assert_json_serializable(obj: Any) -> None:
    """Assert that an object is JSON serializable.

    Args:
        obj: The object to check for JSON serializability.

    Raises:
        AssertionError: If the object is not JSON serializable.
    """
    try:
        json.dumps(obj)
    except (TypeError, ValueError) as e:
        raise AssertionError(f"Object is not JSON serializable: {e}") from e


def assert_alternating_events(events: Sequence[TideEvent]) -> None:
    """Assert that events are strictly increasing in time and alternate type."""
    for previous, current in zip(events, events[1:]):
        assert current.time > previous.time, f"{current} not after {previous}"
        assert current.type != previous.type, f"{current} repeats {previous.type}"


def make_constants(
    m2: float = 50.0, s2: float = 23.0, k1: float = 25.0, o1: float = 19.0
) -> list[HarmonicConstant]:
    """Typical semidiurnal-dominant constants for a Japanese Pacific port."""
    return [
        HarmonicConstant(constituent="M2", amplitude=m2, phase=155.0),
        HarmonicConstant(constituent="S2", amplitude=s2, phase=181.0),
        HarmonicConstant(constituent="K1", amplitude=k1, phase=175.0),
        HarmonicConstant(constituent="O1", amplitude=o1, phase=156.0),
    ]


def assert_consistent_state(info: TideInfo, proximity_minutes: int = 10) -> None:
    """Assert that current_state agrees with next_event as documented."""
    if info.next_event is None:
        assert info.current_state == "rising"
        return
    until_next = info.next_event.time - info.date
    if until_next <= datetime.timedelta(minutes=proximity_minutes):
        assert info.current_state == info.next_event.type.value
    elif info.next_event.type == "high":
        assert info.current_state == "rising"
    else:
        assert info.current_state == "falling"
