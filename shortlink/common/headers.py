"""Header parsing utilities for building public short URLs."""

from typing import Mapping, Optional


def _lower(headers: Mapping[str, str]) -> dict:
    return {k.lower(): v for k, v in headers.items()}


def build_base_url(
    headers: Mapping[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Build the public base URL for short links.

    Priority:
    1. X-Forwarded-Proto + X-Forwarded-Host (first value of each)
    2. Request scheme + host
    3. Fallback base URL from config

    Args:
        headers: Request headers
        fallback_base_url: Base URL from configuration
        request_scheme: Request scheme (http/https)
        request_host: Request host

    Returns:
        Base URL without trailing slash (e.g., https://example.com)
    """
    lowered = _lower(headers)
    proto = lowered.get("x-forwarded-proto")
    host = lowered.get("x-forwarded-host")

    if proto and host:
        # Proxies may append; the client-facing value comes first
        proto = proto.split(",")[0].strip()
        host = host.split(",")[0].strip()
        return f"{proto}://{host}"

    if request_scheme and request_host:
        return f"{request_scheme}://{request_host}"

    return fallback_base_url.rstrip("/")


def forwarded_path_prefix(headers: Mapping[str, str]) -> str:
    """Path prefix from X-Forwarded-Prefix, set by proxies that strip one.

    Returns:
        Normalized prefix with a leading slash and no trailing slash
        (e.g. '/s'), or '' if not set
    """
    value = _lower(headers).get("x-forwarded-prefix", "")
    prefix = value.strip().strip("/")
    return "/" + prefix if prefix else ""
