"""
keydojo Curriculum Module

Handles topic tables, challenge loading and content fingerprints.
"""

from keydojo.curriculum.fingerprint import compute_fingerprint
from keydojo.curriculum.loader import ChallengeLoader, count_keystrokes
from keydojo.curriculum.topics import ALL_TOPICS, FREESTYLE_TOPICS, TOPICS, TopicSpec

__all__ = [
    # Loader
    "ChallengeLoader",
    "count_keystrokes",
    # Fingerprints
    "compute_fingerprint",
    # Topics
    "TopicSpec",
    "TOPICS",
    "FREESTYLE_TOPICS",
    "ALL_TOPICS",
]
