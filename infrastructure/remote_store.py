"""REST client for the optional remote photo store.

Talks to two resources: an object-storage bucket that returns public URLs
for uploaded images, and a records table (PostgREST-style) whose columns
mirror `PhotoRecord` with location and shooting parameters flattened.
Every failure, including timeouts and non-2xx answers, is raised as
`RemoteStoreError`.
"""

from __future__ import annotations

import base64
import binascii
import math
from typing import Any
from urllib.parse import quote, unquote_to_bytes
import uuid

import httpx
from loguru import logger

from core.models import GeoLocation, PhotoRecord, ShootingParameters, normalize_tags
from core.services.interfaces import RemoteStoreError

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
}


def decode_data_uri(url: str) -> tuple[bytes, str]:
    """Split a `data:` URI into raw bytes and its content type.

    Raises:
        ValueError: when `url` is not a well-formed data URI.
    """
    if not url.startswith("data:") or "," not in url:
        raise ValueError("not a data URI")
    header, payload = url[5:].split(",", 1)
    parts = header.split(";")
    content_type = parts[0] or "application/octet-stream"
    if "base64" in parts[1:]:
        try:
            return base64.b64decode(payload, validate=True), content_type
        except (binascii.Error, ValueError) as ex:
            raise ValueError(f"invalid base64 payload: {ex}") from ex
    return unquote_to_bytes(payload), content_type


def _finite(value: float | None) -> float | None:
    return value if value is not None and math.isfinite(value) else None


def record_to_row(record: PhotoRecord, *, include_id: bool = True) -> dict[str, Any]:
    """Flatten `record` into a table row."""
    params = record.parameters or ShootingParameters()
    loc = record.location
    row: dict[str, Any] = {
        "url": record.url,
        "title": record.title,
        "description": record.description,
        "date": record.captured_date,
        "location_name": loc.name,
        "lat": _finite(loc.lat),
        "lng": _finite(loc.lng),
        "country": loc.country,
        "region": loc.region,
        "tags": list(record.tags),
        "camera": params.camera,
        "aperture": params.aperture,
        "shutter_speed": params.shutter_speed,
        "iso": params.iso,
        "focal_length": params.focal_length,
        "user_id": record.owner_id,
        "user_name": record.owner_name,
    }
    if include_id:
        row["id"] = record.id
    return row


def _opt(value: Any) -> str | None:
    return None if value is None or value == "" else str(value)


def _opt_float(value: Any) -> float | None:
    try:
        return None if value is None else float(value)
    except (TypeError, ValueError):
        return None


def row_to_record(row: dict[str, Any]) -> PhotoRecord:
    """Rebuild a record from a table row.

    Raises:
        ValueError: when the row has no id.
    """
    if row.get("id") is None:
        raise ValueError("row has no id")
    param_values = [
        _opt(row.get(k)) for k in ("camera", "aperture", "shutter_speed", "iso", "focal_length")
    ]
    parameters = ShootingParameters(*param_values) if any(param_values) else None
    raw_tags = row.get("tags")
    return PhotoRecord(
        id=str(row["id"]),
        url=str(row.get("url") or ""),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        captured_date=str(row.get("date") or ""),
        location=GeoLocation(
            lat=_opt_float(row.get("lat")),
            lng=_opt_float(row.get("lng")),
            name=str(row.get("location_name") or ""),
            country=_opt(row.get("country")),
            region=_opt(row.get("region")),
        ),
        tags=normalize_tags(raw_tags) if isinstance(raw_tags, list) else (),
        parameters=parameters,
        owner_id=_opt(row.get("user_id")),
        owner_name=_opt(row.get("user_name")),
    )


class RestRemoteStore:
    """Blocking client for the records table and the image bucket."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        table: str = "photos",
        bucket: str = "photos",
        timeout: float = 15.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._table = table
        self._bucket = bucket
        headers = {"apikey": api_key, "Authorization": f"Bearer {api_key}"}
        self._client = client or httpx.Client(timeout=timeout)
        self._client.headers.update(headers)

    def close(self) -> None:
        self._client.close()

    @property
    def _table_url(self) -> str:
        return f"{self._base_url}/rest/v1/{self._table}"

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as ex:
            logger.error(
                "Remote {} {} failed: HTTP {} {}",
                method,
                url,
                ex.response.status_code,
                ex.response.text[:200],
            )
            raise RemoteStoreError(
                f"Remote store answered HTTP {ex.response.status_code}"
            ) from ex
        except httpx.HTTPError as ex:
            logger.error("Remote {} {} failed: {}", method, url, ex)
            raise RemoteStoreError(f"Remote store unreachable: {ex}") from ex
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as ex:
            raise RemoteStoreError("Remote store returned invalid JSON") from ex

    def upload_image(self, data: bytes, content_type: str, owner_id: str | None = None) -> str:
        """Upload image bytes and return their public URL."""
        ext = _EXTENSIONS.get(content_type, "bin")
        object_path = f"{owner_id or 'anonymous'}/{uuid.uuid4().hex}.{ext}"
        quoted = quote(object_path)
        self._request(
            "POST",
            f"{self._base_url}/storage/v1/object/{self._bucket}/{quoted}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )
        logger.info("Uploaded image {} ({} bytes)", object_path, len(data))
        return f"{self._base_url}/storage/v1/object/public/{self._bucket}/{quoted}"

    def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert `row` and return the stored row (with its assigned id)."""
        response = self._request(
            "POST",
            self._table_url,
            json=row,
            headers={"Prefer": "return=representation"},
        )
        payload = self._json(response)
        stored = payload[0] if isinstance(payload, list) and payload else payload
        if not isinstance(stored, dict) or stored.get("id") is None:
            raise RemoteStoreError("Remote store did not return the inserted row")
        return stored

    def update(self, photo_id: str, row: dict[str, Any]) -> None:
        body = {k: v for k, v in row.items() if k != "id"}
        self._request("PATCH", self._table_url, params={"id": f"eq.{photo_id}"}, json=body)

    def delete(self, photo_id: str) -> None:
        self._request("DELETE", self._table_url, params={"id": f"eq.{photo_id}"})

    def select_all(self) -> list[dict[str, Any]]:
        """All rows, newest first."""
        response = self._request(
            "GET", self._table_url, params={"select": "*", "order": "created_at.desc"}
        )
        payload = self._json(response)
        if not isinstance(payload, list):
            raise RemoteStoreError("Remote store returned a non-list result")
        return [row for row in payload if isinstance(row, dict)]
