# src/sources/portal_source.py - v1
"""HTTP source for the campus portal, built on httpx.AsyncClient.

The feed endpoint returns DynamoDB-shaped items (``{"itemId": {"N": "12"}}``)
and an opaque ``next`` cursor that must be sent back verbatim. Whole
document kinds are scraped from HTML pages; the scraping itself is
injected as one async loader per kind.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable

import httpx
from pydantic import BaseModel, ValidationError

from portalsync.config.settings import Settings
from portalsync.core.errors import ServerDataError, TransientNetworkError
from portalsync.core.models import (
    DocumentSnapshot,
    FeedItem,
    FeedPage,
    ResourceKind,
    SessionIdentity,
)
from portalsync.sources.base_source import BaseResourceSource

logger = logging.getLogger(__name__)

DocumentLoader = Callable[[httpx.AsyncClient], Awaitable[DocumentSnapshot]]

FEED_PATH = "/mobile/getAppFeed"

_ATTRIBUTE_TYPES = ("S", "N", "BOOL", "NULL", "L", "M")


class PortalCredentials(BaseModel):
    """Values the portal issues at sign-in."""

    base_url: str
    tenant: str
    user_id: str
    role_id: str
    session_id: str
    app_key: str

    def identity(self) -> SessionIdentity:
        return SessionIdentity(
            user_id=self.user_id, tenant=self.tenant, session_id=self.session_id
        )

    @property
    def host(self) -> str:
        base = self.base_url.removeprefix("https://").removeprefix("http://")
        return f"https://{self.tenant}.{base.strip('/')}"


# === RESPONSE PARSING ===


def unwrap_attribute(value: Any) -> Any:
    """Unwrap one DynamoDB attribute value ({"S": "x"} -> "x")."""
    if isinstance(value, dict) and len(value) == 1:
        (tag, inner), = value.items()
        if tag in _ATTRIBUTE_TYPES:
            if tag == "NULL":
                return None
            if tag == "L":
                return [unwrap_attribute(v) for v in inner]
            if tag == "M":
                return {k: unwrap_attribute(v) for k, v in inner.items()}
            return inner
    return value


def parse_feed_response(data: Any) -> FeedPage:
    """Turn a decoded getAppFeed response into a FeedPage.

    Accepts ``{"feed": [...], "next": {...}}`` or a bare list of items.
    The cursor only counts when it is a non-empty mapping. Items without
    an id are skipped.
    """
    cursor: Any = None
    if isinstance(data, list):
        raw_items = data
    elif isinstance(data, dict):
        raw_items = data.get("feed") or []
        cursor = data.get("next")
    else:
        raise ServerDataError(f"Unexpected feed response type: {type(data).__name__}")

    if not isinstance(raw_items, list):
        raise ServerDataError("Feed response 'feed' field is not a list")

    items: list[FeedItem] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        flat = {k: unwrap_attribute(v) for k, v in raw.items()}
        try:
            items.append(FeedItem.model_validate(flat))
        except ValidationError as e:
            logger.debug("Skipping malformed feed item: %s", e.errors()[:1])

    next_cursor = cursor if isinstance(cursor, dict) and cursor else None
    return FeedPage(items=items, next_cursor=next_cursor)


def encode_cursor(cursor: Any | None) -> str:
    """Form value for the ``start`` field: 0 for page one, else the JSON cursor."""
    if cursor is None:
        return "0"
    if isinstance(cursor, (dict, list)):
        return json.dumps(cursor)
    return str(cursor)


# === SOURCE ===


class PortalSource(BaseResourceSource):
    """Fetch collaborator talking to one signed-in portal account.

    Args:
        credentials: Sign-in values used for every request.
        client: Shared AsyncClient. Created (and owned) when omitted.
        document_loaders: Async scraper per whole-document kind.
        page_size: Feed items requested per page.
        timeout_s: Request timeout when the client is created here.
    """

    def __init__(
        self,
        credentials: PortalCredentials,
        client: httpx.AsyncClient | None = None,
        document_loaders: dict[ResourceKind, DocumentLoader] | None = None,
        page_size: int = 20,
        timeout_s: float = 30.0,
    ) -> None:
        self._credentials = credentials
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_s, follow_redirects=True
        )
        self._loaders = dict(document_loaders or {})
        self._page_size = page_size

    @classmethod
    def from_settings(
        cls,
        credentials: PortalCredentials,
        settings: Settings,
        document_loaders: dict[ResourceKind, DocumentLoader] | None = None,
    ) -> PortalSource:
        return cls(
            credentials,
            document_loaders=document_loaders,
            page_size=settings.feed_page_size,
            timeout_s=settings.portal_request_timeout_s,
        )

    @property
    def feed_url(self) -> str:
        return f"{self._credentials.host}{FEED_PATH}"

    def register_loader(self, kind: ResourceKind, loader: DocumentLoader) -> None:
        self._loaders[kind] = loader

    async def fetch_feed_page(self, cursor: Any | None) -> FeedPage:
        creds = self._credentials
        form = {
            "userId": creds.user_id,
            "roleId": creds.role_id,
            "sessionId": creds.session_id,
            "start": encode_cursor(cursor),
            "limit": str(self._page_size),
            "appKey": creds.app_key,
        }
        try:
            response = await self._client.post(self.feed_url, data=form)
        except httpx.TransportError as e:
            raise TransientNetworkError(f"Error connecting to portal: {e}") from e

        _raise_for_status(response, "feed")
        try:
            data = response.json()
        except ValueError as e:
            raise ServerDataError(f"Feed response is not JSON: {e}") from e

        page = parse_feed_response(data)
        logger.debug(
            "Fetched feed page: %d items, more=%s",
            len(page.items), page.next_cursor is not None,
        )
        return page

    async def fetch_document(self, kind: ResourceKind) -> DocumentSnapshot:
        loader = self._loaders.get(kind)
        if loader is None:
            raise ServerDataError(f"No document loader registered for {kind}")
        try:
            return await loader(self._client)
        except httpx.TransportError as e:
            raise TransientNetworkError(f"Error connecting to portal: {e}") from e
        except httpx.HTTPStatusError as e:
            _raise_for_status(e.response, kind)
            raise ServerDataError(str(e)) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _raise_for_status(response: httpx.Response, what: str) -> None:
    status = response.status_code
    if status < 400:
        return
    if status == 429 or status >= 500:
        raise TransientNetworkError(f"Portal unavailable loading {what}: HTTP {status}")
    raise ServerDataError(f"Failed to load {what}: HTTP {status}")
