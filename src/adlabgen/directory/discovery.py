"""
ADLabGen Domain Controller Discovery

Locates domain controllers through DNS SRV records
(_ldap._tcp.dc._msdcs.<domain>).
"""

from __future__ import annotations

from typing import List, Tuple

import dns.exception
import dns.resolver
import structlog

logger = structlog.get_logger()

# Seconds the resolver may spend across all nameservers
DEFAULT_LIFETIME = 5.0


def dc_srv_name(domain: str) -> str:
    """Return the SRV owner name advertising a domain's LDAP DCs."""
    return f"_ldap._tcp.dc._msdcs.{domain.lower().strip('.')}"


def discover_domain_controllers(
    domain: str,
    lifetime: float = DEFAULT_LIFETIME,
) -> List[Tuple[str, int]]:
    """
    Return (hostname, port) pairs for a domain's controllers.

    Ordered by SRV priority (lower first), then weight (higher first).
    Empty when the lookup fails or times out.
    """
    srv_name = dc_srv_name(domain)
    try:
        answers = dns.resolver.resolve(srv_name, "SRV", lifetime=lifetime)
    except dns.exception.DNSException as e:
        logger.warning("dc_discovery_failed", name=srv_name, error=str(e))
        return []

    records = sorted(answers, key=lambda r: (r.priority, -r.weight))
    servers = [(str(r.target).rstrip("."), r.port) for r in records]
    logger.info("domain_controllers_discovered", domain=domain, servers=servers)
    return servers
