"""
Parsing of the ``Link`` navigation header.

The header is a comma separated list of ``<uri>; rel="name"`` entries.
"""

import re
from typing import List, NamedTuple, Optional, Union
from urllib.parse import urljoin

_LINK_RE = re.compile(r"<([^>]*)>((?:\s*;\s*[^;,]+)*)")
_PARAM_RE = re.compile(r';\s*([^\s=;,]+)\s*=\s*(?:"([^"]*)"|([^\s;,]+))')


class NavigationLink(NamedTuple):
    """One ``<uri>; rel=...`` entry of a Link header."""
    rel: str
    uri: str


def parse_link_header(value: Union[str, bytes, None]) -> List[NavigationLink]:
    """
    Parse a Link header value.

    An entry whose ``rel`` holds several space separated names yields one
    link per name. Entries without ``rel`` are skipped.

    Args:
        value: Raw header value

    Returns:
        Links in header order
    """
    if not value:
        return []
    if isinstance(value, bytes):
        value = value.decode("latin-1")

    links: List[NavigationLink] = []
    for match in _LINK_RE.finditer(value):
        uri = match.group(1).strip()
        for param in _PARAM_RE.finditer(match.group(2)):
            if param.group(1).lower() != "rel":
                continue
            rels = param.group(2) if param.group(2) is not None else param.group(3)
            links.extend(NavigationLink(rel=rel.lower(), uri=uri) for rel in rels.split())
    return links


def find_link(
    value: Union[str, bytes, None],
    rel: str,
    base_url: Optional[str] = None,
) -> Optional[str]:
    """
    Get the URI of the first link with the given relation.

    Args:
        value: Raw Link header value
        rel: Relation name, e.g. ``"next"``
        base_url: URL of the request, used to resolve relative URIs

    Returns:
        The URI, or None when the relation is absent or its URI is empty
    """
    for link in parse_link_header(value):
        if link.rel == rel:
            if not link.uri:
                return None
            return urljoin(base_url, link.uri) if base_url else link.uri
    return None
