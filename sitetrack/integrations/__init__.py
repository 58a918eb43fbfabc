"""Clients for services outside the tracking store."""

from sitetrack.integrations.base import BaseIntegration
from sitetrack.integrations.storage import StorageClient

__all__ = ["BaseIntegration", "StorageClient"]
