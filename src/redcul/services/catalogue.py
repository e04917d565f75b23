"""Client for the catalogue's JSON API (``ajax.php``)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from redcul.error_handling import ConfigurationError, NetworkError, RemoteRejection
from redcul.release.edition import ExistingVariant

if TYPE_CHECKING:
    from redcul.config import RedculConfig
    from redcul.release.assembler import SubmissionPayload

logger = logging.getLogger(__name__)

TORRENT_MIME_TYPE = "application/x-bittorrent"


@dataclass
class CatalogueGroup:
    """A torrent group and the torrents already uploaded to it."""

    group_id: int
    name: str = ""
    variants: list[ExistingVariant] = field(default_factory=list)

    @classmethod
    def from_api(cls, response: dict[str, Any]) -> CatalogueGroup:
        group = response.get("group") or {}
        return cls(
            group_id=group["id"],
            name=group.get("name") or "",
            variants=[
                ExistingVariant.from_api(torrent)
                for torrent in response.get("torrents") or []
            ],
        )


def encode_form(fields: dict[str, Any]) -> dict[str, str | list[str]]:
    """Flatten payload fields into multipart form values.

    Empty and false values are left out entirely and lists are sent as
    repeated ``key[]`` fields.
    """
    form: dict[str, str | list[str]] = {}
    for key, value in fields.items():
        if not value:
            continue
        if isinstance(value, list | tuple):
            form[f"{key}[]"] = [str(item) for item in value]
        elif isinstance(value, bool):
            form[key] = "1"
        else:
            form[key] = str(value)
    return form


class CatalogueClient:
    """Minimal async client for the two API actions the pipeline needs."""

    def __init__(self, config: RedculConfig):
        self.config = config
        self.api_url = config.api_url

    @property
    def headers(self) -> dict[str, str]:
        if not self.config.api_key:
            msg = "API key is required"
            raise ConfigurationError(
                msg,
                solution="Pass --api-key, set RED_API_KEY or add api_key to the config",
            )
        return {
            "Authorization": self.config.api_key,
            "User-Agent": self.config.user_agent,
        }

    async def torrent_group(self, info_hash: str) -> CatalogueGroup:
        """Look up the group that contains the torrent with ``info_hash``."""
        response = await self._request(
            "GET",
            "torrentgroup",
            params={"action": "torrentgroup", "hash": info_hash},
        )
        return CatalogueGroup.from_api(response)

    async def upload(self, payload: SubmissionPayload) -> dict[str, Any]:
        """Submit all produced torrents as one upload."""
        fields = payload.form_fields()
        logger.info("Uploading: %s", fields)

        files = [
            (name, (path.name, path.read_bytes(), TORRENT_MIME_TYPE))
            for name, path in payload.file_fields().items()
        ]

        return await self._request(
            "POST",
            "upload",
            params={"action": "upload"},
            data=encode_form(fields),
            files=files,
        )

    async def _request(
        self,
        method: str,
        action: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self.config.request_timeout,
                headers=self.headers,
            ) as client:
                response = await client.request(method, self.api_url, **kwargs)
        except httpx.HTTPError as exc:
            raise NetworkError(
                f"{action} request failed",
                details=str(exc),
                original_error=exc,
            ) from exc

        if response.status_code >= 500:
            raise NetworkError(
                f"{action} request failed with HTTP {response.status_code}",
                details=response.text[:500],
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise RemoteRejection(
                action,
                f"invalid response (HTTP {response.status_code})",
                details=response.text[:500],
                original_error=exc,
            ) from exc

        status = data.get("status")
        if status != "success":
            raise RemoteRejection(action, status, details=data.get("error"))

        return data.get("response") or {}
