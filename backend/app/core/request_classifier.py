"""Request Classification: decide whether an API call is internal or needs an API key.

Invariants:
    - Internal requires a browser signal (origin or referer) matching the host or an allowed domain
    - Known developer tools (postman, curl, ...) are never internal
    - Sensitive query params never leave this module unredacted
"""

import hashlib
from dataclasses import dataclass
from collections.abc import Iterable, Mapping
from urllib.parse import urlparse

from app.core.domain_types import ApiKeyHash

DEFAULT_ALLOWED_DOMAINS: tuple[str, ...] = (
    *(f"localhost:{port}" for port in range(3000, 3006)),
    *(f"127.0.0.1:{port}" for port in range(3000, 3006)),
    "argenstats.com",
    "www.argenstats.com",
    "argenstats.vercel.app",
)

DEVELOPMENT_TOOLS = ("postman", "insomnia", "thunder client", "httpie", "curl", "wget")

SENSITIVE_PARAMS = frozenset({"api_key", "token", "password", "secret"})


@dataclass(frozen=True)
class RequestClass:
    is_localhost: bool
    is_internal: bool
    is_development_tool: bool


def _host_of(url: str | None) -> str | None:
    if not url:
        return None
    return urlparse(url).netloc or None


def classify(
    headers: Mapping[str, str],
    allowed_domains: Iterable[str] = DEFAULT_ALLOWED_DOMAINS,
) -> RequestClass:
    origin = headers.get("origin")
    referer = headers.get("referer")
    host = headers.get("host")
    user_agent = (headers.get("user-agent") or "").lower()
    allowed = tuple(allowed_domains)

    is_dev_tool = any(tool in user_agent for tool in DEVELOPMENT_TOOLS)
    same_host = bool(host) and host in (_host_of(origin), _host_of(referer))
    allowed_match = any(
        value and any(domain in value for domain in allowed)
        for value in (origin, referer)
    )
    is_internal = bool(origin or referer) and (same_host or allowed_match) and not is_dev_tool
    return RequestClass(
        is_localhost=bool(host) and "localhost" in host,
        is_internal=is_internal,
        is_development_tool=is_dev_tool,
    )


def client_ip(headers: Mapping[str, str]) -> str | None:
    """First x-forwarded-for hop, then cf-connecting-ip, then x-real-ip."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return headers.get("cf-connecting-ip") or headers.get("x-real-ip")


def hash_api_key(api_key: str) -> ApiKeyHash:
    return ApiKeyHash(hashlib.sha256(api_key.encode()).hexdigest()[:16])


def sanitize_params(params: Mapping[str, str]) -> dict[str, str]:
    return {k: v for k, v in params.items() if k.lower() not in SENSITIVE_PARAMS}
