"""
keydojo Session Module

Workspace setup, the runtime contract, editor launching and results collection.
"""

from keydojo.session.collector import RawResult, buffer_matches, collect, normalize, parse_results
from keydojo.session.contract import CONTRACT_ENV_VAR, PROTOCOL_VERSION, SessionContract
from keydojo.session.launcher import SessionLauncher, SessionOutcome
from keydojo.session.workspace import SessionWorkspace

__all__ = [
    "SessionWorkspace",
    "SessionContract",
    "PROTOCOL_VERSION",
    "CONTRACT_ENV_VAR",
    "SessionLauncher",
    "SessionOutcome",
    "RawResult",
    "collect",
    "parse_results",
    "normalize",
    "buffer_matches",
]
