# Hashing and webhook signature helpers
import hashlib
import hmac
import secrets
from typing import Optional, Union


def verify_github_signature(payload: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """Check an X-Hub-Signature-256 header against the raw request body

    The comparison is constant-time; a missing header or secret never verifies.
    """
    if not signature or not secret:
        return False

    digest = 'sha256=' + hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature.encode(), digest.encode())


def sign_payload(payload: bytes, secret: str) -> str:
    """Build the signature header value GitHub would send for this payload"""
    return 'sha256=' + hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def generate_id() -> str:
    return secrets.token_hex(16)


def hash_data(data: Union[str, bytes]) -> str:
    if isinstance(data, str):
        data = data.encode()
    return hashlib.sha256(data).hexdigest()
