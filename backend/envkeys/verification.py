"""
Self-check for provisioned keys: a raw signature round trip and an
RS256 JWT issued with the private key and decoded with the public key.
"""
import logging
from datetime import datetime, timedelta, timezone

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from jose import jwt
from jose.exceptions import JOSEError

from .exceptions import VerificationError

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"
_CHECK_MESSAGE = b"envkeys key pair check"


def verify_key_pair(private_key, public_key):
    """
    Confirm ``public_key`` belongs to ``private_key``.

    Raises:
        VerificationError: If the public numbers differ or a signature made
            with the private key does not verify
    """
    if private_key.public_key().public_numbers() != public_key.public_numbers():
        raise VerificationError("Public key does not match private key")

    signature = private_key.sign(_CHECK_MESSAGE, padding.PKCS1v15(), hashes.SHA256())
    try:
        public_key.verify(signature, _CHECK_MESSAGE, padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        raise VerificationError("Signature made with the private key failed verification")


def _pem_pair(keys):
    private_pem = keys.private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = keys.public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
    return private_pem, public_pem


def issue_test_token(keys, subject="test@domain.com", issuer="envkeys", lifetime=timedelta(days=7)) -> str:
    """Issue an RS256 token with ``keys`` and decode it again. Returns the token."""
    private_pem, public_pem = _pem_pair(keys)
    claims = {
        "sub": subject,
        "iss": issuer,
        "exp": int((datetime.now(timezone.utc) + lifetime).timestamp()),
    }
    try:
        token = jwt.encode(claims, private_pem, algorithm=ALGORITHM)
    except JOSEError as e:
        raise VerificationError(f"Error during JWT creation: {e}")

    try:
        decoded = jwt.decode(token, public_pem, algorithms=[ALGORITHM], issuer=issuer)
    except JOSEError as e:
        raise VerificationError(f"Issued token failed verification: {e}")

    if decoded.get("sub") != subject:
        raise VerificationError("Decoded token subject does not match")

    logger.debug(f"Issued and verified test token for {subject}")
    return token


def check_keys(keys) -> str:
    """Run both checks on loaded keys, returning the test token."""
    verify_key_pair(keys.private_key, keys.public_key)
    return issue_test_token(keys)
