"""
Route update service.

Fetches a replacement route dataset from the configured update URL and swaps
it into the catalog. The catalog's ``replace`` is all-or-nothing, so a bad
payload never leaves a half-updated catalog behind.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..exceptions import CatalogValidationError, ExternalServiceError
from ..models import UpdateResponse
from .analytics import UsageAnalytics
from .catalog_service import RouteCatalog

logger = logging.getLogger(__name__)

NO_UPDATES_MESSAGE = "No updates available at this time."
UPDATED_MESSAGE = "Routes data updated."


class RouteUpdateService:
    """Checks for and applies replacement route datasets."""

    def __init__(
        self,
        catalog: RouteCatalog,
        analytics: Optional[UsageAnalytics] = None,
        url: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        self.catalog = catalog
        self.analytics = analytics
        self.url = url
        self.timeout = timeout

    async def fetch_update(self) -> Optional[Any]:
        """
        Download the replacement dataset.

        Returns:
            The decoded JSON payload, or None when no update is published
            (no URL configured, or the URL answers 404)

        Raises:
            ExternalServiceError: network failure or unexpected HTTP status
            CatalogValidationError: the body is not JSON
        """
        if not self.url:
            logger.info("No update URL configured")
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(self.url, headers={"Cache-Control": "no-cache"})
        except httpx.HTTPError as e:
            logger.warning(f"Route update fetch failed: {e}")
            raise ExternalServiceError(f"Could not reach update source: {e}", service="routes-update") from e

        if response.status_code == 404:
            logger.info(f"No update file at {self.url}")
            return None
        if not 200 <= response.status_code < 300:
            logger.warning(f"Route update fetch returned HTTP {response.status_code}")
            raise ExternalServiceError(
                f"Update source returned HTTP {response.status_code}",
                service="routes-update",
                details={"status": response.status_code},
            )

        try:
            return response.json()
        except ValueError as e:
            raise CatalogValidationError(f"Update payload is not valid JSON: {e}") from e

    def apply_update(self, records: Any) -> UpdateResponse:
        """Replace the catalog with ``records`` and reset usage counters."""
        count = self.catalog.replace(records)
        # Counters may reference routes that no longer exist
        if self.analytics is not None:
            try:
                self.analytics.clear()
            except OSError:
                logger.warning("Usage counters were not reset after the catalog update")
        return UpdateResponse(applied=True, message=UPDATED_MESSAGE, routeCount=count)

    async def check_for_updates(self) -> UpdateResponse:
        payload = await self.fetch_update()
        if payload is None:
            return UpdateResponse(applied=False, message=NO_UPDATES_MESSAGE, routeCount=len(self.catalog))
        return self.apply_update(payload)
