"""Short URL rendering."""


def build_short_url(identifier: str, base_url: str, path_prefix: str = "") -> str:
    """Join base URL, optional prefix and identifier into a public short URL.

    >>> build_short_url("abc123", "https://sho.rt/", "/s/")
    'https://sho.rt/s/abc123'
    """
    segments = [base_url.rstrip("/"), path_prefix.strip("/"), identifier]
    return "/".join(segment for segment in segments if segment)
