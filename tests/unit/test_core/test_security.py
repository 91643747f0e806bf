"""Unit tests for token handling and voter identity."""
import pytest
from datetime import timedelta
from unittest.mock import MagicMock

from fastapi import HTTPException

from agora.api.deps import get_voter_identity
from agora.core.config import settings
from agora.core.rate_limit import get_client_ip
from agora.core.security import get_optional_user_id, require_user_id
from agora.services.vote import AnonymousIdentity, AuthenticatedIdentity
from tests.utils import make_token


def _request(headers=None, client_host="198.51.100.7"):
    request = MagicMock()
    request.headers = headers or {}
    request.client.host = client_host
    return request


@pytest.mark.unit
class TestOptionalUser:

    def test_no_header_is_anonymous(self):
        assert get_optional_user_id(_request()) is None

    def test_non_bearer_scheme_is_anonymous(self):
        assert get_optional_user_id(_request({"Authorization": "Basic dXNlcjpwYXNz"})) is None

    def test_valid_token(self):
        request = _request({"Authorization": f"Bearer {make_token(12)}"})
        assert get_optional_user_id(request) == 12

    def test_expired_token_rejected(self):
        request = _request({"Authorization": f"Bearer {make_token(12, timedelta(minutes=-5))}"})

        with pytest.raises(HTTPException) as exc_info:
            get_optional_user_id(request)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token expired"

    def test_garbage_token_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            get_optional_user_id(_request({"Authorization": "Bearer not.a.jwt"}))

        assert exc_info.value.status_code == 401

    def test_require_user_id(self):
        with pytest.raises(HTTPException) as exc_info:
            require_user_id(_request())

        assert exc_info.value.status_code == 401


@pytest.mark.unit
class TestVoterIdentity:

    def test_logged_in_user(self):
        assert get_voter_identity(_request(), user_id=3) == AuthenticatedIdentity(user_id=3)

    def test_anonymous_device_ignores_untrusted_forwarded_for(self):
        request = _request({"User-Agent": "Firefox", "X-Forwarded-For": "203.0.113.5"})

        identity = get_voter_identity(request, user_id=None)

        assert identity == AnonymousIdentity(ip_address="198.51.100.7", user_agent="Firefox")

    def test_anonymous_device_behind_trusted_proxy(self, monkeypatch):
        monkeypatch.setattr(settings, "TRUSTED_PROXIES", ["198.51.100.7", "10.0.0.1"])
        request = _request({"User-Agent": "Firefox", "X-Forwarded-For": "6.6.6.6, 203.0.113.5, 10.0.0.1"})

        identity = get_voter_identity(request, user_id=None)

        assert identity.ip_address == "203.0.113.5"

    def test_all_hops_trusted_falls_back_to_first(self, monkeypatch):
        monkeypatch.setattr(settings, "TRUSTED_PROXIES", ["198.51.100.7", "10.0.0.1"])
        request = _request({"X-Forwarded-For": "10.0.0.1"})

        assert get_client_ip(request) == "10.0.0.1"

    def test_anonymous_without_user_agent(self):
        identity = get_voter_identity(_request(), user_id=None)

        assert isinstance(identity, AnonymousIdentity)
        assert identity.user_agent == "unknown"
        assert identity.ip_address == "198.51.100.7"
