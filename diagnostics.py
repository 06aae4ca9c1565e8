"""
Host introspection used by the diagnostic endpoints.

Each function performs a direct OS or DNS query and returns ready-to-write
text. Soft failures never raise: they come back as an ``Error: ...!`` line
(or, for the FQDN chain, as the plain hostname) so the endpoints keep
answering 200 even when the underlying query breaks.
"""

import ipaddress
import logging
import os
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import psutil

logger = logging.getLogger(__name__)


def error_line(exc: BaseException) -> str:
    return f"Error: {exc}!\n"


# ---------------------------------------------------------------------------
# hostname / env
# ---------------------------------------------------------------------------

def hostname_line() -> str:
    """Configured hostname, or an in-band error line."""
    try:
        return f"{socket.gethostname()}\n"
    except OSError as e:
        logger.warning(f"Hostname lookup failed: {e}")
        return error_line(e)


def env_lines(environ: Optional[Mapping[bytes, bytes]] = None) -> List[bytes]:
    """
    Raw ``KEY=VALUE`` lines, one per variable.

    Works on bytes so values that are not valid UTF-8 come out untouched.
    """
    if environ is None:
        environ = _raw_environ()
    return [b"%s=%s\n" % (key, value) for key, value in environ.items()]


def _raw_environ() -> Mapping[bytes, bytes]:
    if os.supports_bytes_environ:
        return os.environb
    return {
        key.encode("utf-8", "surrogatepass"): value.encode("utf-8", "surrogatepass")
        for key, value in os.environ.items()
    }


# ---------------------------------------------------------------------------
# headers
# ---------------------------------------------------------------------------

def canonical_header_name(name: str) -> str:
    """content-type -> Content-Type, x-forwarded-for -> X-Forwarded-For"""
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def header_lines(pairs: Iterable[Tuple[bytes, bytes]]) -> List[bytes]:
    """
    Group repeated headers under one name and render ``Name=[v1 v2]`` lines.

    Takes the raw ASGI header pairs so values go back out byte for byte.
    Values keep the order they arrived in.
    """
    grouped: Dict[bytes, List[bytes]] = {}
    for name, value in pairs:
        canonical = canonical_header_name(name.decode("latin-1")).encode("latin-1")
        grouped.setdefault(canonical, []).append(value)
    return [b"%s=[%s]\n" % (name, b" ".join(values)) for name, values in grouped.items()]


# ---------------------------------------------------------------------------
# interface addresses
# ---------------------------------------------------------------------------

class InterfaceAddress(ABC):
    """Base of the closed set of address kinds reported for an interface."""

    @abstractmethod
    def bare_ip(self) -> str:
        """Bare IP text, or an empty string when there is none."""


@dataclass(frozen=True)
class NetworkAddress(InterfaceAddress):
    """An address bound with a netmask (IP plus prefix length)."""

    ip: str
    prefix: int

    def bare_ip(self) -> str:
        return self.ip


@dataclass(frozen=True)
class BareAddress(InterfaceAddress):
    ip: str

    def bare_ip(self) -> str:
        return self.ip


@dataclass(frozen=True)
class UnrecognizedAddress(InterfaceAddress):
    """Any non-IP address family; renders as a blank line."""

    family: int
    address: str = ""

    def bare_ip(self) -> str:
        return ""


_IP_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _strip_zone(ip: str) -> str:
    # fe80::1%eth0 -> fe80::1, 10.0.0.1/24 -> 10.0.0.1
    return ip.split("%", 1)[0].split("/", 1)[0]


def _prefix_length(netmask: str) -> Optional[int]:
    try:
        mask = ipaddress.ip_address(_strip_zone(netmask))
    except ValueError:
        return None
    return bin(int(mask)).count("1")


def classify_address(family: int, address: str, netmask: Optional[str] = None) -> InterfaceAddress:
    """Map one psutil address record onto an InterfaceAddress kind."""
    if family not in _IP_FAMILIES:
        return UnrecognizedAddress(family=family, address=address or "")

    ip = _strip_zone(address)
    prefix = _prefix_length(netmask) if netmask else None
    if prefix is None:
        return BareAddress(ip=ip)
    return NetworkAddress(ip=ip, prefix=prefix)


def iter_ip_lines(
    net_if_addrs: Optional[Callable[[], Mapping[str, Sequence]]] = None,
) -> Iterator[str]:
    """
    Yield one line per bound address on every interface, link-layer entries skipped.

    An OSError while enumerating stops the stream with an error line; lines
    already yielded are kept.
    """
    try:
        interfaces = (net_if_addrs or psutil.net_if_addrs)()
        for _name, addrs in interfaces.items():
            for snic in addrs:
                # MAC addresses are not bound addresses
                if snic.family == psutil.AF_LINK:
                    continue
                addr = classify_address(snic.family, snic.address, snic.netmask)
                yield f"{addr.bare_ip()}\n"
    except OSError as e:
        logger.warning(f"Interface enumeration failed: {e}")
        yield error_line(e)


# ---------------------------------------------------------------------------
# FQDN
# ---------------------------------------------------------------------------

def forward_lookup(hostname: str) -> List[str]:
    """Resolve a hostname to its addresses, in resolver order, without duplicates."""
    seen: Dict[str, None] = {}
    for _family, _type, _proto, _canon, sockaddr in socket.getaddrinfo(hostname, None):
        seen.setdefault(sockaddr[0], None)
    return list(seen)


def first_ipv4(addresses: Iterable[str]) -> Optional[str]:
    """First IPv4 address in order; IPv4-mapped IPv6 counts, pure IPv6 is skipped."""
    for raw in addresses:
        try:
            ip = ipaddress.ip_address(_strip_zone(raw))
        except ValueError:
            continue
        if ip.version == 4:
            return str(ip)
        if ip.ipv4_mapped is not None:
            return str(ip.ipv4_mapped)
    return None


def reverse_lookup(ip: str) -> List[str]:
    name, aliases, _addrs = socket.gethostbyaddr(ip)
    return [n for n in [name, *aliases] if n]


def fqdn_line() -> str:
    """Best-effort FQDN: hostname -> forward lookup -> first IPv4 -> PTR."""
    try:
        hostname = socket.gethostname()
    except OSError as e:
        logger.warning(f"Hostname lookup failed: {e}")
        return error_line(e)

    try:
        addresses = forward_lookup(hostname)
    except (OSError, UnicodeError) as e:
        logger.debug(f"Forward lookup of {hostname} failed: {e}")
        return f"{hostname}\n"

    ipv4 = first_ipv4(addresses)
    if ipv4 is None:
        return f"{hostname}\n"

    try:
        names = reverse_lookup(ipv4)
    except (OSError, UnicodeError) as e:
        logger.debug(f"Reverse lookup of {ipv4} failed: {e}")
        return f"{hostname}\n"
    if not names:
        return f"{hostname}\n"

    fqdn = names[0]
    if fqdn.endswith("."):
        fqdn = fqdn[:-1]
    return f"{fqdn}\n"
