"""Tests for CFG endpoint discovery and port extraction."""

from __future__ import annotations

import pytest

from setupctl.domain.cfg import CfgContentError, extract_port, find_endpoints


class TestFindEndpoints:
    def test_parses_quoted_and_bare_endpoints(self) -> None:
        raw = 'endpoint_add_tcp "0.0.0.0:30120"\nendpoint_add_udp 0.0.0.0:30120\n'
        endpoints = find_endpoints(raw)
        assert [(e.kind, e.interface, e.port) for e in endpoints] == [
            ("tcp", "0.0.0.0", 30120),
            ("udp", "0.0.0.0", 30120),
        ]

    def test_ignores_comments_and_other_lines(self) -> None:
        raw = '# endpoint_add_tcp "0.0.0.0:1"\nsv_hostname "x"\n'
        assert find_endpoints(raw) == []

    def test_ipv6_wildcard(self) -> None:
        endpoints = find_endpoints('endpoint_add_tcp "[::]:30120"')
        assert endpoints[0].interface == "[::]"
        assert endpoints[0].port == 30120


class TestExtractPort:
    def test_valid_cfg(self) -> None:
        raw = 'endpoint_add_tcp "0.0.0.0:30125"\nendpoint_add_udp "0.0.0.0:30125"\n'
        assert extract_port(raw) == 30125

    def test_no_endpoints(self) -> None:
        with pytest.raises(CfgContentError, match="No endpoints found"):
            extract_port('sv_hostname "x"')

    def test_tcp_must_bind_all_interfaces(self) -> None:
        raw = 'endpoint_add_tcp "127.0.0.1:30120"\nendpoint_add_udp "0.0.0.0:30120"\n'
        with pytest.raises(CfgContentError, match="TCP endpoint"):
            extract_port(raw)

    def test_udp_required(self) -> None:
        with pytest.raises(CfgContentError, match="UDP endpoint"):
            extract_port('endpoint_add_tcp "0.0.0.0:30120"')

    def test_ports_must_match(self) -> None:
        raw = 'endpoint_add_tcp "0.0.0.0:30120"\nendpoint_add_udp "0.0.0.0:30121"\n'
        with pytest.raises(CfgContentError, match="same port"):
            extract_port(raw)
