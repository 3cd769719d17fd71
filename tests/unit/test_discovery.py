"""
Unit tests for adlabgen.directory.discovery module.
"""

from types import SimpleNamespace

import dns.exception
import dns.resolver

from adlabgen.directory.discovery import (
    DEFAULT_LIFETIME,
    dc_srv_name,
    discover_domain_controllers,
)


def _srv(target, port=389, priority=0, weight=100):
    return SimpleNamespace(target=target, port=port, priority=priority, weight=weight)


class TestDcSrvName:
    """Tests for SRV owner name construction."""

    def test_lowercases_and_strips_root_dot(self):
        """Test a fully qualified, mixed-case domain."""
        assert dc_srv_name("LAB.Example.com.") == "_ldap._tcp.dc._msdcs.lab.example.com"


class TestDiscoverDomainControllers:
    """Tests for DNS SRV discovery."""

    def test_sorted_by_priority_then_weight(self, monkeypatch):
        """Test lower priority first, then higher weight."""
        queried = []

        def fake_resolve(name, rdtype, lifetime=None):
            queried.append((name, rdtype, lifetime))
            return [
                _srv("dc3.lab.example.com.", priority=10, weight=100),
                _srv("dc1.lab.example.com.", priority=0, weight=10),
                _srv("dc2.lab.example.com.", priority=0, weight=50, port=3268),
            ]

        monkeypatch.setattr(dns.resolver, "resolve", fake_resolve)

        servers = discover_domain_controllers("LAB.example.com")

        assert queried == [("_ldap._tcp.dc._msdcs.lab.example.com", "SRV", DEFAULT_LIFETIME)]
        assert servers == [
            ("dc2.lab.example.com", 3268),
            ("dc1.lab.example.com", 389),
            ("dc3.lab.example.com", 389),
        ]

    def test_custom_lifetime(self, monkeypatch):
        """Test the resolver lifetime is passed through."""
        seen = []

        def fake_resolve(name, rdtype, lifetime=None):
            seen.append(lifetime)
            return [_srv("dc1.lab.example.com.")]

        monkeypatch.setattr(dns.resolver, "resolve", fake_resolve)

        assert discover_domain_controllers("lab.example.com", lifetime=1.5) == [
            ("dc1.lab.example.com", 389)
        ]
        assert seen == [1.5]

    def test_lookup_failure_returns_empty(self, monkeypatch):
        """Test DNS errors yield an empty list."""

        def fake_resolve(name, rdtype, lifetime=None):
            raise dns.resolver.NXDOMAIN()

        monkeypatch.setattr(dns.resolver, "resolve", fake_resolve)

        assert discover_domain_controllers("lab.example.com") == []

    def test_timeout_returns_empty(self, monkeypatch):
        """Test a resolver timeout yields an empty list."""

        def fake_resolve(name, rdtype, lifetime=None):
            raise dns.exception.Timeout()

        monkeypatch.setattr(dns.resolver, "resolve", fake_resolve)

        assert discover_domain_controllers("lab.example.com") == []
