"""Request Classifier — internal vs external API calls.

Invariants:
    - Internal needs an origin/referer matching host or an allowed domain
    - Development tools are never internal
"""

import hashlib

from app.core.request_classifier import (
    classify, client_ip, hash_api_key, sanitize_params,
)


def test_bare_external_request():
    cls = classify({"host": "api.argenstats.com", "user-agent": "python-requests/2.32"})
    assert not cls.is_internal
    assert not cls.is_localhost
    assert not cls.is_development_tool


def test_localhost_host():
    assert classify({"host": "localhost:8000"}).is_localhost


def test_allowed_origin_is_internal():
    cls = classify({"host": "api.example.com", "origin": "https://argenstats.com"})
    assert cls.is_internal


def test_same_host_referer_is_internal():
    cls = classify({"host": "foo.com", "referer": "https://foo.com/dashboard"})
    assert cls.is_internal


def test_development_tool_never_internal():
    cls = classify({
        "host": "api.example.com",
        "origin": "https://argenstats.com",
        "user-agent": "PostmanRuntime/7.36.0",
    })
    assert cls.is_development_tool
    assert not cls.is_internal


def test_client_ip_precedence():
    assert client_ip({"x-forwarded-for": "1.2.3.4, 10.0.0.1", "x-real-ip": "9.9.9.9"}) == "1.2.3.4"
    assert client_ip({"cf-connecting-ip": "5.5.5.5", "x-real-ip": "9.9.9.9"}) == "5.5.5.5"
    assert client_ip({}) is None


def test_hash_api_key_is_sha256_prefix():
    expected = hashlib.sha256(b"secret-key").hexdigest()[:16]
    assert hash_api_key("secret-key") == expected


def test_sanitize_params_drops_secrets():
    assert sanitize_params({"api_key": "x", "Token": "y", "type": "BLUE"}) == {"type": "BLUE"}
