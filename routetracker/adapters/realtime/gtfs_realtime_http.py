from __future__ import annotations

import httpx
from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2

from routetracker.domain.exceptions.feeds import FeedDecodeError, FeedFetchError


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse 'Key:Value;Key2:Value2' into a header dict, skipping junk parts."""

    raw = (raw or "").strip()
    if not raw:
        return {}
    headers: dict[str, str] = {}
    for part in raw.split(";"):
        part = part.strip()
        if not part or ":" not in part:
            continue
        k, v = part.split(":", 1)
        k = k.strip()
        if k:
            headers[k] = v.strip()
    return headers


async def fetch_feed_message(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout_s: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> gtfs_realtime_pb2.FeedMessage:
    """GET a GTFS-realtime feed and decode it.

    Raises FeedFetchError for transport errors, timeouts and non-2xx
    responses, FeedDecodeError when the body is not a FeedMessage.
    """

    try:
        async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
            resp = await client.get(url, headers=headers or {})
            resp.raise_for_status()
            content = resp.content
    except httpx.HTTPStatusError as exc:
        raise FeedFetchError(
            f"{url} returned HTTP {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise FeedFetchError(f"{url}: {type(exc).__name__}: {exc}") from exc

    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(content)
    except DecodeError as exc:
        raise FeedDecodeError(f"{url}: invalid GTFS-realtime payload: {exc}") from exc
    return feed
