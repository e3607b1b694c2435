"""
Resolve a git remote URL into the forge's (owner, repository) pair.
"""

from __future__ import annotations

import logging
from typing import Iterable, NamedTuple
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

GITHUB_HOST = "github.com"
EMPTY_IDENTITY = ("", "")

# Alternate names github.com answers to (SSH over port 443, web)
_HOST_ALIASES = {
    "ssh.github.com": GITHUB_HOST,
    "www.github.com": GITHUB_HOST,
}


class RemoteIdentity(NamedTuple):
    host: str
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def repo_argument(self) -> str:
        """Value for ``gh --repo``; other hosts need the ``HOST/OWNER/REPO`` form."""
        if self.host == GITHUB_HOST:
            return self.full_name
        return f"{self.host}/{self.full_name}"


def _normalize_host(host: str) -> str:
    host = host.lower()
    return _HOST_ALIASES.get(host, host)


def parse_remote(url: str) -> RemoteIdentity | None:
    """
    Parse a remote URL into host, owner and name.

    Supports:
    - SSH style: ``git@github.com:owner/repo.git``
    - URL style: ``https://github.com/owner/repo[.git]`` (also ``ssh://``, ``git://``)

    Returns:
        ``None`` when the URL cannot be parsed.
    """
    try:
        cleaned = url.strip().rstrip("/")
        if cleaned.endswith(".git"):
            cleaned = cleaned[: -len(".git")]

        if "://" in cleaned:
            parts = urlsplit(cleaned)
            host = parts.hostname or ""
            segments = parts.path.strip("/").split("/")
        elif "@" in cleaned and ":" in cleaned:
            head, _, remainder = cleaned.partition(":")
            host = head.rpartition("@")[2]
            segments = remainder.strip("/").split("/")
        else:
            return None

        if not host or len(segments) < 2:
            return None
        owner, name = segments[0], segments[1]
        if not owner or not name:
            return None
        return RemoteIdentity(_normalize_host(host), owner, name)
    except (AttributeError, ValueError) as e:
        logger.warning("Error parsing remote URL %r: %s", url, e)
        return None


def parse_remote_url(url: str, hosts: Iterable[str] = (GITHUB_HOST,)) -> tuple[str, str]:
    """
    Parse a remote URL into ``(owner, name)``.

    Only remotes on one of ``hosts`` are accepted; anything else gives
    ``("", "")``, the same as an unparseable URL.
    """
    identity = parse_remote(url)
    if identity is None or identity.host not in {_normalize_host(h) for h in hosts}:
        return EMPTY_IDENTITY
    return identity.owner, identity.name
