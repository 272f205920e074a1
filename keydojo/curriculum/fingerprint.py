"""Content fingerprints used to detect outdated scores."""

from __future__ import annotations

import hashlib
import json

from keydojo.models import Thresholds

FINGERPRINT_LENGTH = 16


def compute_fingerprint(start: str, target: str, par: int, thresholds: Thresholds) -> str:
    """
    Stable hash over the fields that define what a score means.

    Titles, hints and file locations are not hashed, so editing them keeps
    existing scores current.

    Returns:
        16-character hex digest.
    """
    payload = {
        "start": start,
        "target": target,
        "par": int(par),
        "thresholds": list(thresholds.as_tuple()),
    }
    # Sort keys for stable serialization
    encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
