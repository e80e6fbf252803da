from __future__ import annotations

import httpx


class MetadataError(Exception):
    """The instance metadata service could not provide an address."""


def metadata_url(address: str, path: str) -> str:
    return f"http://{address.strip('/')}/{path.lstrip('/')}"


def resolve_address(
    address: str,
    path: str = "latest/meta-data/public-hostname",
    timeout_s: float = 2.0,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """Look up this host's registrable address.

    Every call goes to the metadata service; nothing is cached so a replaced
    host is picked up on the next event.
    """
    url = metadata_url(address, path)
    try:
        with httpx.Client(timeout=timeout_s, follow_redirects=False, transport=transport) as client:
            resp = client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise MetadataError(f"metadata lookup {url} failed: {type(e).__name__}: {e}") from e

    if resp.status_code != 200:
        raise MetadataError(f"metadata lookup {url} returned HTTP {resp.status_code}")
    value = resp.text.strip()
    if not value:
        raise MetadataError(f"metadata lookup {url} returned an empty body")
    return value
