"""Outbound request authentication headers."""

import hashlib
import hmac

from compliance_hub.domain.entities import AuthType, WebhookEndpoint

SIGNATURE_HEADER = "X-Webhook-Signature"


def sign_body(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of the exact body bytes that go on the wire."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str) -> bool:
    return hmac.compare_digest(sign_body(secret, body), signature)


def auth_headers(endpoint: WebhookEndpoint, body: bytes) -> dict[str, str]:
    """
    Headers that authenticate a request to ``endpoint``.

    - API_KEY: ``X-API-Key: <value>``
    - BEARER: ``Authorization: Bearer <value>``
    - HMAC_SHA256: ``X-Webhook-Signature: <hex digest of body>``
    """
    if not endpoint.auth_value or endpoint.auth_type == AuthType.NONE:
        return {}

    if endpoint.auth_type == AuthType.API_KEY:
        return {"X-API-Key": endpoint.auth_value}
    if endpoint.auth_type == AuthType.BEARER:
        return {"Authorization": f"Bearer {endpoint.auth_value}"}
    if endpoint.auth_type == AuthType.HMAC_SHA256:
        return {SIGNATURE_HEADER: sign_body(endpoint.auth_value, body)}
    return {}
