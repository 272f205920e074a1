"""Grading engine: keystroke count to letter grade."""

from __future__ import annotations

from typing import Optional

from keydojo.models import Grade, Thresholds

_BANDS = (Grade.A, Grade.B, Grade.C, Grade.D, Grade.E)


def grade(keystrokes: int, thresholds: Thresholds, freestyle: bool = False) -> Optional[Grade]:
    """
    Grade a keystroke count against a challenge's thresholds.

    Bands are checked in order A..E and the first one with
    ``keystrokes <= ceiling`` wins, so a count sitting exactly on a boundary
    gets the better grade. Anything above the E ceiling is F.

    Args:
        keystrokes: Keystrokes used to reach the target.
        thresholds: The challenge's A-E ceilings.
        freestyle: Freestyle sessions are never graded.

    Returns:
        The grade, or None for freestyle.
    """
    if freestyle:
        return None
    for band, ceiling in zip(_BANDS, thresholds.as_tuple()):
        if keystrokes <= ceiling:
            return band
    return Grade.F
