"""Remote gateways for federation-sync."""

from __future__ import annotations

from .http_gateway import HttpFederationGateway, invitation_from_record, translate_error

__all__ = ["HttpFederationGateway", "invitation_from_record", "translate_error"]
