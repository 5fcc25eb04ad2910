"""
Loading provisioned key material back into key objects.

Supports the three places a provisioned key pair ends up: variables in
the environment or an env file, raw DER files, and files holding the
base64 text of the DER.
"""
import base64
import binascii
import logging
import os
from typing import NamedTuple, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from dotenv import dotenv_values, load_dotenv

from .exceptions import EncodingError, KeyLoadError
from .provisioner import DEFAULT_PRIVATE_NAME, DEFAULT_PUBLIC_NAME, PROFILES

logger = logging.getLogger(__name__)


class LoadedKeys(NamedTuple):
    private_key: rsa.RSAPrivateKey
    public_key: rsa.RSAPublicKey
    profile: Optional[str]


def detect_profile(private_der: bytes, public_der: bytes, private_key, public_key) -> Optional[str]:
    """Return the profile whose DER forms reproduce both inputs, or None."""
    for name, (private_format, public_format) in PROFILES.items():
        reencoded_private = private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=private_format,
            encryption_algorithm=serialization.NoEncryption(),
        )
        reencoded_public = public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=public_format,
        )
        if reencoded_private == private_der and reencoded_public == public_der:
            return name
    return None


def keys_from_der(private_der: bytes, public_der: bytes) -> LoadedKeys:
    """
    Parse a DER private key (PKCS#1 or PKCS#8) and a DER public key
    (PKCS#1 or SubjectPublicKeyInfo).

    Raises:
        EncodingError: If either blob is not a DER RSA key
    """
    try:
        private_key = serialization.load_der_private_key(private_der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise EncodingError(f"Private key is not valid DER: {e}", stage="load")
    try:
        public_key = serialization.load_der_public_key(public_der)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise EncodingError(f"Public key is not valid DER: {e}", stage="load")

    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise EncodingError("Loaded private key is not an RSA private key.", stage="load")
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise EncodingError("Loaded public key is not an RSA public key.", stage="load")

    profile = detect_profile(private_der, public_der, private_key, public_key)
    return LoadedKeys(private_key, public_key, profile)


def decode_b64(value: str, name: str) -> bytes:
    try:
        return base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"{name} is not valid base64: {e}", stage="load")


def _read_file(path, mode="rb"):
    try:
        with open(path, mode) as f:
            return f.read()
    except FileNotFoundError:
        raise KeyLoadError(f"Key file not found: {path}")
    except OSError as e:
        raise KeyLoadError(f"Cannot read key file {path}: {e}")


def load_from_env(private_name=DEFAULT_PRIVATE_NAME, public_name=DEFAULT_PUBLIC_NAME, env_file=None) -> LoadedKeys:
    """
    Load keys from base64 DER variables.

    With ``env_file`` the variables are read from that file only; otherwise
    a ``.env`` is loaded into the process environment first and the
    environment is consulted.
    """
    if env_file is not None:
        if not os.path.isfile(env_file):
            raise KeyLoadError(f"Env file not found: {env_file}")
        values = dotenv_values(env_file)
    else:
        load_dotenv()
        values = os.environ

    missing = [name for name in (private_name, public_name) if not values.get(name)]
    if missing:
        raise KeyLoadError(f"Missing variables: {', '.join(missing)}")

    logger.debug(f"Loading keys from {env_file or 'environment'}")
    return keys_from_der(
        decode_b64(values[private_name], private_name),
        decode_b64(values[public_name], public_name),
    )


def load_from_der_files(private_path="private.der", public_path="public.der") -> LoadedKeys:
    return keys_from_der(_read_file(private_path), _read_file(public_path))


def load_from_b64_files(private_path="private.der.b64", public_path="public.der.b64") -> LoadedKeys:
    private_text = _read_file(private_path, "r")
    public_text = _read_file(public_path, "r")
    return keys_from_der(
        decode_b64(private_text, private_path),
        decode_b64(public_text, public_path),
    )
