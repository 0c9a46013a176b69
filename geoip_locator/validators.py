from ipaddress import ip_address


def normalize_public_ip(ip: str | None) -> str | None:
    """Return the canonical text form of a globally routable address, or None.

    Surrounding whitespace is ignored and IPv6 addresses come back compressed and
    lower-cased, so callers dispatch exactly the address that was validated.
    """
    if not ip:
        return None

    try:
        address = ip_address(str(ip).strip())
    except ValueError:
        return None

    # is_global covers private and special-purpose ranges but not multicast.
    if not address.is_global or address.is_multicast:
        return None
    return str(address)


def is_public_routable(ip: str | None) -> bool:
    """Return True only for globally routable IPv4/IPv6 addresses.

    Malformed input, private ranges (RFC 1918, IPv6 unique-local) and reserved
    ranges (loopback, link-local, documentation, shared address space,
    multicast, unspecified) are not eligible for geolocation.
    """
    return normalize_public_ip(ip) is not None
