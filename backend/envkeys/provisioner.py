"""
RSA key provisioning for JWT signing keys.

Generates a private/public key pair, serialises both halves to DER in a
single encoding profile and writes them base64-encoded into an env file:

    JWT_PRIVATE=<base64 DER private key>
    JWT_PUBLIC=<base64 DER public key>

Two profiles are available and exactly one is used per provisioner:

    pkcs1  PKCS#1 RSAPrivateKey / PKCS#1 RSAPublicKey (default)
    pkcs8  PKCS#8 PrivateKeyInfo / SubjectPublicKeyInfo
"""
import base64
import logging
import math
import os
import tempfile
import threading
from pathlib import Path
from typing import List, NamedTuple, Sequence

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .exceptions import (
    EncodingError,
    EnvFileError,
    InvalidParameterError,
    KeyGenerationTimeout,
)
from .validation import (
    DEFAULT_KEY_SIZE,
    validate_destination,
    validate_key_size,
    validate_profile,
    validate_variable_name,
)

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "pkcs1"
DEFAULT_PRIVATE_NAME = "JWT_PRIVATE"
DEFAULT_PUBLIC_NAME = "JWT_PUBLIC"
PUBLIC_EXPONENT = 65537

PROFILES = {
    "pkcs1": (serialization.PrivateFormat.TraditionalOpenSSL, serialization.PublicFormat.PKCS1),
    "pkcs8": (serialization.PrivateFormat.PKCS8, serialization.PublicFormat.SubjectPublicKeyInfo),
}


class KeyPair(NamedTuple):
    private_key: rsa.RSAPrivateKey
    bits: int
    algorithm: str = "RSA"

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self.private_key.public_key()


class EncodedKeyMaterial(NamedTuple):
    label: str
    data: bytes
    profile: str


class ConfigEntry(NamedTuple):
    name: str
    value: str

    def to_line(self) -> str:
        return f"{self.name}={self.value}\n"


class ProvisionResult(NamedTuple):
    path: Path
    entries: List[ConfigEntry]
    bits: int
    profile: str


def _is_text_safe(value: str) -> bool:
    return value.isascii() and not any(ord(c) < 0x20 or ord(c) == 0x7F for c in value)


class KeyProvisioner:
    def __init__(self, profile=DEFAULT_PROFILE, private_name=DEFAULT_PRIVATE_NAME,
                 public_name=DEFAULT_PUBLIC_NAME, public_exponent=PUBLIC_EXPONENT, timeout=None):
        """
        Args:
            profile (str): "pkcs1" or "pkcs8"
            private_name (str): Variable name for the private key entry
            public_name (str): Variable name for the public key entry
            public_exponent (int): RSA public exponent
            timeout (float, optional): Wall-clock budget for key generation in seconds
        """
        self.profile = validate_profile(profile)
        self.private_name = validate_variable_name(private_name)
        self.public_name = validate_variable_name(public_name)
        if self.private_name == self.public_name:
            raise InvalidParameterError(
                f"Private and public variable names must differ, both are {private_name!r}", stage="configure"
            )
        self.public_exponent = public_exponent
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))
                                    or not math.isfinite(timeout) or timeout <= 0):
            raise InvalidParameterError("Timeout must be a finite number greater than 0", stage="configure")
        self.timeout = timeout

    def _generate_private_key(self, bits):
        return rsa.generate_private_key(public_exponent=self.public_exponent, key_size=bits)

    def generate(self, bits=DEFAULT_KEY_SIZE) -> KeyPair:
        """
        Generate a fresh RSA key pair of ``bits`` modulus size.

        With a timeout the key is generated on a daemon thread. The thread
        cannot be interrupted, so on timeout it is abandoned and its result
        dropped; being a daemon it does not hold up interpreter exit.
        """
        bits = validate_key_size(bits)
        if self.timeout is None:
            private_key = self._call_generator(bits)
        else:
            outcome = {}

            def worker():
                try:
                    outcome["key"] = self._call_generator(bits)
                except BaseException as e:
                    outcome["error"] = e

            thread = threading.Thread(target=worker, name="envkeys-keygen", daemon=True)
            thread.start()
            thread.join(self.timeout)
            if thread.is_alive():
                raise KeyGenerationTimeout(
                    f"Generating a {bits}-bit RSA key exceeded {self.timeout}s"
                )
            if "error" in outcome:
                raise outcome["error"]
            private_key = outcome["key"]
        return KeyPair(private_key=private_key, bits=bits)

    def _call_generator(self, bits):
        try:
            return self._generate_private_key(bits)
        except (ValueError, TypeError) as e:
            raise InvalidParameterError(f"Key generation rejected parameters: {e}")

    def _check_pair(self, pair):
        if not isinstance(pair, KeyPair) or not isinstance(pair.private_key, rsa.RSAPrivateKey):
            raise EncodingError(f"Expected an RSA KeyPair, got {type(pair)}")

    def encode_private(self, pair: KeyPair) -> EncodedKeyMaterial:
        """Serialise the private key to DER in this provisioner's profile."""
        self._check_pair(pair)
        private_format, _ = PROFILES[self.profile]
        try:
            data = pair.private_key.private_bytes(
                encoding=serialization.Encoding.DER,
                format=private_format,
                encryption_algorithm=serialization.NoEncryption(),
            )
        except (ValueError, TypeError) as e:
            raise EncodingError(f"Failed to encode private key: {e}")
        return EncodedKeyMaterial("private", data, self.profile)

    def encode_public(self, pair: KeyPair) -> EncodedKeyMaterial:
        """Serialise the public key to DER in this provisioner's profile."""
        self._check_pair(pair)
        _, public_format = PROFILES[self.profile]
        try:
            data = pair.public_key.public_bytes(
                encoding=serialization.Encoding.DER,
                format=public_format,
            )
        except (ValueError, TypeError) as e:
            raise EncodingError(f"Failed to encode public key: {e}")
        return EncodedKeyMaterial("public", data, self.profile)

    def to_config_entries(self, private: EncodedKeyMaterial, public: EncodedKeyMaterial) -> List[ConfigEntry]:
        """
        Base64-encode both payloads (standard padded alphabet, single line)
        and pair them with their variable names, private first.

        Raises:
            EncodingError: If the materials are swapped, come from different
                profiles, or the encoded value is not plain ASCII
        """
        if private.label != "private" or public.label != "public":
            raise EncodingError(
                f"Expected private then public material, got {private.label!r} and {public.label!r}",
                stage="format",
            )
        if private.profile != public.profile:
            raise EncodingError(
                f"Key material profiles differ: {private.profile} and {public.profile}",
                stage="format",
            )

        entries = []
        for name, material in ((self.private_name, private), (self.public_name, public)):
            if not isinstance(material.data, (bytes, bytearray)) or not material.data:
                raise EncodingError(f"{material.label} key material is empty or not bytes", stage="format")
            try:
                value = base64.b64encode(material.data).decode("ascii")
            except UnicodeDecodeError as e:
                raise EncodingError(f"Base64 output for {name} is not ASCII: {e}", stage="format")
            if not _is_text_safe(value):
                raise EncodingError(f"Value for {name} contains unsafe characters", stage="format")
            entries.append(ConfigEntry(name, value))
        return entries

    def write_config(self, entries: Sequence[ConfigEntry], destination) -> Path:
        """
        Write ``NAME=value`` lines to ``destination`` atomically.

        The content goes to a temporary file in the destination's directory
        which then replaces the destination in one rename. On failure the
        temporary file is removed and an existing destination is untouched.

        Raises:
            EncodingError: If names repeat or a value is not single-line ASCII
            EnvFileError: If the file cannot be written
        """
        seen = set()
        for entry in entries:
            validate_variable_name(entry.name)
            if entry.name in seen:
                raise EncodingError(f"Duplicate variable name: {entry.name}", stage="format")
            seen.add(entry.name)
            if not isinstance(entry.value, str) or not _is_text_safe(entry.value):
                raise EncodingError(f"Value for {entry.name} is not single-line ASCII", stage="format")

        path = validate_destination(destination)
        payload = "".join(entry.to_line() for entry in entries)
        directory = os.path.dirname(os.path.abspath(path))

        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".envkeys-", suffix=".tmp", dir=directory)
        except OSError as e:
            raise EnvFileError(f"Cannot create temporary file in {directory}: {e}")

        try:
            with os.fdopen(fd, "w", encoding="ascii", newline="\n") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            _discard(tmp_path)
            raise EnvFileError(f"Failed to write {path}: {e}")
        except BaseException:
            _discard(tmp_path)
            raise

        logger.debug(f"Wrote {len(entries)} entries to {path}")
        return Path(path)

    def provision(self, bits=DEFAULT_KEY_SIZE, destination=".env") -> ProvisionResult:
        """Run generate -> encode -> format -> write once."""
        bits = validate_key_size(bits)
        validate_destination(destination)

        logger.info(f"Generating {bits}-bit RSA key pair ({self.profile} profile)")
        pair = self.generate(bits)

        private = self.encode_private(pair)
        public = self.encode_public(pair)
        logger.info(f"Encoded private key ({len(private.data)} bytes) and public key ({len(public.data)} bytes)")

        entries = self.to_config_entries(private, public)
        path = self.write_config(entries, destination)
        logger.info(f"Wrote {', '.join(e.name for e in entries)} to {path}")

        return ProvisionResult(path=path, entries=entries, bits=bits, profile=self.profile)


def _discard(path):
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
