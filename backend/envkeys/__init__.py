"""
envkeys
JWT signing key provisioning into env files

Generates an RSA key pair, encodes it as DER in a single profile
(PKCS#1 or PKCS#8/SubjectPublicKeyInfo) and writes both halves base64
encoded as JWT_PRIVATE / JWT_PUBLIC, replacing the destination atomically.
"""

from .provisioner import (
    KeyProvisioner,
    KeyPair,
    EncodedKeyMaterial,
    ConfigEntry,
    ProvisionResult,
    PROFILES,
)
from .exceptions import (
    KeyProvisioningError,
    InvalidParameterError,
    ConfigurationError,
    EncodingError,
    EnvFileError,
    KeyGenerationTimeout,
    KeyLoadError,
    VerificationError,
)
from .validation import (
    validate_key_size,
    validate_profile,
    validate_variable_name,
    validate_destination,
)
from .loader import (
    LoadedKeys,
    keys_from_der,
    load_from_env,
    load_from_der_files,
    load_from_b64_files,
)
from .verification import verify_key_pair, issue_test_token, check_keys
from .config import Settings

__all__ = [
    "KeyProvisioner",
    "provision_env_keys",
    "load_from_env",
    "check_keys",
]

__version__ = "1.0.0"

def provision_env_keys(bits=None, destination=None, profile=None, **kwargs):
    """
    Generate a key pair and write it to an env file in one call.

    Args:
        bits (int, optional): RSA modulus size, defaults to ENVKEYS_KEY_SIZE or 3072
        destination (str, optional): Env file path, defaults to ENVKEYS_OUTPUT or ".env"
        profile (str, optional): "pkcs1" or "pkcs8", defaults to ENVKEYS_PROFILE or "pkcs1"
        **kwargs: Additional KeyProvisioner parameters

    Returns:
        ProvisionResult: Written path, entries, key size and profile

    Raises:
        InvalidParameterError: If bits or profile is invalid
        EncodingError: If the key cannot be serialised
        EnvFileError: If the destination cannot be written

    Example:
        >>> from envkeys import provision_env_keys
        >>> result = provision_env_keys(2048, "service/.env")
        >>> [entry.name for entry in result.entries]
        ['JWT_PRIVATE', 'JWT_PUBLIC']
    """
    settings = Settings()
    kwargs.setdefault("private_name", settings.PRIVATE_NAME)
    kwargs.setdefault("public_name", settings.PUBLIC_NAME)
    kwargs.setdefault("timeout", settings.TIMEOUT)

    provisioner = KeyProvisioner(profile=profile or settings.PROFILE, **kwargs)
    return provisioner.provision(
        bits=settings.KEY_SIZE if bits is None else bits,
        destination=settings.OUTPUT if destination is None else destination,
    )
