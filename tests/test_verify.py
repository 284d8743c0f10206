"""Tests for the verify-ingress flow."""

from unittest.mock import MagicMock

import pytest
import yaml

from ingressdomain.config import REQUIREMENTS_FILE_NAME
from ingressdomain.discovery import IngressDomainDiscovery
from ingressdomain.errors import IngressVerificationError
from ingressdomain.models import RequirementsConfig
from ingressdomain.verify import is_valid_email, verify_ingress, verify_tls


def tls_requirements(domain, email="", provider="gke") -> RequirementsConfig:
    return RequirementsConfig.model_validate({
        "cluster": {"provider": provider},
        "ingress": {"domain": domain, "tls": {"enabled": True, "email": email}},
    })


class TestVerifyTLS:
    """Tests for verify_tls."""

    def test_disabled(self):
        verify_tls(RequirementsConfig.model_validate({"ingress": {"domain": "1.2.3.4.nip.io"}}))

    def test_magic_dns_rejected(self):
        """Test TLS cannot be used with a magic DNS domain."""
        with pytest.raises(IngressVerificationError, match="automated domains"):
            verify_tls(tls_requirements("1.2.3.4.nip.io", "me@example.com"))

    def test_invalid_email_rejected(self):
        with pytest.raises(IngressVerificationError, match="valid email"):
            verify_tls(tls_requirements("apps.example.com", "not-an-email"))

    def test_valid(self):
        verify_tls(tls_requirements("apps.example.com", "me@example.com"))

    @pytest.mark.parametrize("value,valid", [
        ("me@example.com", True),
        ("Me <me@example.com>", True),
        ("", False),
        ("example.com", False),
        ("@example.com", False),
    ])
    def test_is_valid_email(self, value, valid):
        assert is_valid_email(value) is valid


class TestVerifyIngress:
    """Tests for verify_ingress."""

    @pytest.fixture
    def discovery(self):
        discovery = MagicMock(spec=IngressDomainDiscovery)

        def discover(requirements, *args, **kwargs):
            requirements.ingress.domain = "10.0.0.1.nip.io"
            return requirements

        discovery.discover_domain.side_effect = discover
        return discovery

    def test_defaults_domain_and_saves(self, discovery, tmp_path):
        """Test the discovered domain is written to the requirements file."""
        (tmp_path / REQUIREMENTS_FILE_NAME).write_text("cluster:\n  provider: gke\n")

        result = verify_ingress(discovery, tmp_path, ingress_namespace="edge")

        assert result.ingress.domain == "10.0.0.1.nip.io"
        saved = yaml.safe_load((tmp_path / REQUIREMENTS_FILE_NAME).read_text())
        assert saved["ingress"]["domain"] == "10.0.0.1.nip.io"
        assert discovery.discover_domain.call_args.kwargs["ingress_namespace"] == "edge"

    def test_configured_domain_skips_discovery(self, discovery, tmp_path):
        (tmp_path / REQUIREMENTS_FILE_NAME).write_text("ingress:\n  domain: apps.example.com\n")

        result = verify_ingress(discovery, tmp_path)

        assert result.ingress.domain == "apps.example.com"
        discovery.discover_domain.assert_not_called()

    def test_tls_on_discovered_magic_domain_fails(self, discovery, tmp_path):
        (tmp_path / REQUIREMENTS_FILE_NAME).write_text(
            "ingress:\n  tls:\n    enabled: true\n    email: me@example.com\n")

        with pytest.raises(IngressVerificationError):
            verify_ingress(discovery, tmp_path)
