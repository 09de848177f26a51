"""Domain interfaces for federation-sync.

This module contains abstract interfaces that define contracts for the local
cache backend and the remote federation system.
"""

from __future__ import annotations

from .directory_gateway import DirectoryGateway, Record
from .invitation_gateway import InvitationGateway, InvitationPage, InvitationQuery
from .key_value_store import KeyValueStore

__all__ = [
    "DirectoryGateway",
    "InvitationGateway",
    "InvitationPage",
    "InvitationQuery",
    "KeyValueStore",
    "Record",
]
