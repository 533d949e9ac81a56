"""Listing-mode prober backed by the Vertex AI publisher model catalog.

``VertexModelCatalog`` issues one listing request (following pagination)
and reduces each returned resource name to its last path segment.  Any
failure degrades to an empty roster and the resolver serves its static
fallback.
"""

from typing import Any, Dict, List, Optional

import httpx

from .config import ResolverSettings
from .endpoints import last_path_segment, publisher_catalog_url
from .exceptions import CatalogUnavailableError, ResolverError
from .interfaces import AccessTokenProvider
from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 100
MAX_PAGES = 20


def extract_identifiers(records: List[Dict[str, Any]]) -> List[str]:
    """Turn catalog records into bare model identifiers, keeping order."""
    identifiers = []
    for record in records:
        name = record.get("name") if isinstance(record, dict) else None
        if not name:
            continue
        identifier = last_path_segment(str(name))
        if identifier:
            identifiers.append(identifier)
    return identifiers


class VertexModelCatalog:
    def __init__(
        self,
        settings: ResolverSettings,
        token_provider: AccessTokenProvider,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.token_provider = token_provider
        self._transport = transport

    async def list_identifiers(self) -> List[str]:
        try:
            records = await self._fetch_records()
        except (httpx.HTTPError, ResolverError, ValueError) as exc:
            logger.warning("Model catalog unavailable, using fallbacks: %s", exc)
            return []

        identifiers = extract_identifiers(records)
        logger.info("Model catalog listed %d identifiers", len(identifiers))
        return identifiers

    async def _fetch_records(self) -> List[Dict[str, Any]]:
        if not self.settings.project_id:
            raise CatalogUnavailableError("GOOGLE_CLOUD_PROJECT_ID not set")

        token = await self.token_provider.get_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "x-goog-user-project": self.settings.project_id,
        }
        url = publisher_catalog_url(self.settings)
        params: Dict[str, Any] = {"pageSize": DEFAULT_PAGE_SIZE}
        records: List[Dict[str, Any]] = []

        async with httpx.AsyncClient(
            timeout=self.settings.request_timeout_seconds, transport=self._transport
        ) as client:
            for _ in range(MAX_PAGES):
                response = await client.get(url, headers=headers, params=params)
                if response.status_code >= 400:
                    raise CatalogUnavailableError(
                        f"catalog listing returned HTTP {response.status_code}",
                        status=response.status_code,
                    )
                payload = response.json()
                if not isinstance(payload, dict):
                    raise CatalogUnavailableError("catalog listing returned an unexpected payload")
                page = payload.get("publisherModels") or payload.get("models") or []
                if not isinstance(page, list):
                    raise CatalogUnavailableError("catalog listing returned a malformed model list")
                records.extend(page)

                page_token = payload.get("nextPageToken")
                if not page_token:
                    break
                params = {"pageSize": DEFAULT_PAGE_SIZE, "pageToken": page_token}

        return records
