# thumbnail/policy.py
import ipaddress, re, socket
from dataclasses import dataclass
from urllib.parse import urlsplit

from thumbnail.errors import InvalidTargetError

_LOCAL_NAMES = ("localhost", "localhost.localdomain", "ip6-localhost", "ip6-loopback")


# shorthand, hex, octal and single-integer IPv4 forms Chromium also accepts
_LOOSE_IPV4_RE = re.compile(r"^(0x[0-9a-f]+|[0-9]+)(\.(0x[0-9a-f]*|[0-9]+)){0,3}$")


def _parse_ip(host: str):
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        pass
    if not _LOOSE_IPV4_RE.match(host):
        return None
    try:
        return ipaddress.IPv4Address(socket.inet_aton(host))
    except OSError:
        return None


def _is_private_ip(host: str) -> bool:
    ip = _parse_ip(host)
    if ip is None:
        return False
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    )


@dataclass(frozen=True)
class UrlPolicy:
    """Decides which caller-supplied URLs the renderer may navigate to.

    Only literal IP hosts are checked against private ranges; hostnames are
    not resolved here.
    """

    allowed_schemes: tuple = ("http", "https")
    allowed_hosts: tuple = ()
    allow_private: bool = False

    @classmethod
    def from_settings(cls, settings) -> "UrlPolicy":
        return cls(
            allowed_hosts=tuple(h.lower() for h in settings.allowed_hosts),
            allow_private=settings.allow_private,
        )

    def check(self, url: str) -> str:
        url = (url or "").strip()
        if not url:
            raise InvalidTargetError("No target URL provided.")
        try:
            parts = urlsplit(url)
            host = parts.hostname
        except ValueError as e:
            raise InvalidTargetError(f"Malformed target URL: {e}") from e

        if parts.scheme.lower() not in self.allowed_schemes:
            raise InvalidTargetError(f"Scheme not allowed: {parts.scheme or '(none)'}")
        if not host:
            raise InvalidTargetError("Target URL has no host.")

        host = host.lower().rstrip(".")
        if self.allowed_hosts and not any(
            host == allowed or host.endswith("." + allowed) for allowed in self.allowed_hosts
        ):
            raise InvalidTargetError(f"Host not allowed: {host}")
        if not self.allow_private and (
            host in _LOCAL_NAMES or host.endswith(".localhost") or _is_private_ip(host)
        ):
            raise InvalidTargetError(f"Private address not allowed: {host}")
        return url
