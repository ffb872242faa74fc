"""Download the technicalfactorio megabase index for map display links."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

import httpx

from .errors import MetadataFetchFailed
from .samples import MapInfo

LOG = logging.getLogger(__name__)


def fetch_display_metadata(url: str, timeout_s: float = 30.0, client: Optional[httpx.Client] = None) -> Dict[str, str]:
    """Return `{save name: source link}` from the megabase index at `url`."""
    own_client = client is None
    http = client or httpx.Client(timeout=httpx.Timeout(timeout_s), follow_redirects=True)
    try:
        resp = http.get(url)
    except httpx.HTTPError as exc:
        raise MetadataFetchFailed(f"Could not download listing of megabases from {url}: {exc}") from exc
    finally:
        if own_client:
            http.close()
    if resp.status_code != 200:
        raise MetadataFetchFailed(f"Could not download listing of megabases: HTTP {resp.status_code} from {url}")
    try:
        payload = resp.json()
    except ValueError as exc:  # JSONDecodeError or UnicodeDecodeError
        raise MetadataFetchFailed(f"Megabase listing at {url} is not valid JSON: {exc}") from exc

    saves = payload.get("saves") if isinstance(payload, dict) else None
    if not isinstance(saves, list):
        raise MetadataFetchFailed(f"Megabase listing at {url} has no `saves` list")
    links: Dict[str, str] = {}
    for save in saves:
        if not isinstance(save, dict) or "name" not in save:
            continue
        links[str(save["name"])] = str(save.get("source_link") or "")
    LOG.info("Loaded %d megabase entries", len(links))
    return links


def resolve_links(maps: Iterable[MapInfo], links: Dict[str, str]) -> Dict[MapInfo, str]:
    resolved: Dict[MapInfo, str] = {}
    missing = []
    for map_info in maps:
        if map_info.map_name in links:
            resolved[map_info] = links[map_info.map_name]
        else:
            missing.append(map_info.map_name)
    if missing:
        raise MetadataFetchFailed(f"Megabase listing has no entry for: {', '.join(sorted(set(missing)))}")
    return resolved
