"""
Input validation for the envkeys provisioning library

This module provides validation functions for the parameters accepted by
the provisioner so bad input is rejected before any key is generated or
any file is touched.
"""

import os
import re
from typing import Optional, Union
from .exceptions import (
    InvalidParameterError,
    EnvFileError,
)

MIN_KEY_SIZE = 2048
MAX_KEY_SIZE = 16384
DEFAULT_KEY_SIZE = 3072

VALID_PROFILES = ("pkcs1", "pkcs8")

_VARIABLE_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

def validate_key_size(bits: Union[int, str, None]) -> int:
    """
    Validate an RSA modulus size.

    Args:
        bits: Requested modulus size in bits. ``None`` or an empty string
            selects the default, numeric strings are accepted.

    Returns:
        Validated key size as int

    Raises:
        InvalidParameterError: If the size is not an integer, is non-positive
            or is below the safe minimum
    """
    if bits is None:
        return DEFAULT_KEY_SIZE

    if isinstance(bits, str):
        bits = bits.strip()
        if not bits:
            return DEFAULT_KEY_SIZE
        try:
            bits = int(bits, 10)
        except ValueError:
            raise InvalidParameterError(f"Key size must be an integer, got {bits!r}")

    if isinstance(bits, bool) or not isinstance(bits, int):
        raise InvalidParameterError(f"Key size must be an integer, got {type(bits)}")

    if bits <= 0:
        raise InvalidParameterError("Key size must be greater than 0")

    if bits < MIN_KEY_SIZE:
        raise InvalidParameterError(f"Key size must be at least {MIN_KEY_SIZE} bits, got {bits}")

    if bits > MAX_KEY_SIZE:
        raise InvalidParameterError(f"Key size cannot exceed {MAX_KEY_SIZE} bits, got {bits}")

    return bits

def validate_profile(profile: Optional[str]) -> str:
    """
    Validate an encoding profile name.

    Raises:
        InvalidParameterError: If the profile is unknown
    """
    if not profile:
        raise InvalidParameterError("Profile cannot be empty", stage="configure")

    if not isinstance(profile, str):
        raise InvalidParameterError(f"Profile must be a string, got {type(profile)}", stage="configure")

    profile = profile.strip().lower()
    if profile not in VALID_PROFILES:
        raise InvalidParameterError(f"Profile must be one of: {', '.join(VALID_PROFILES)}", stage="configure")

    return profile

def validate_variable_name(name: str) -> str:
    """
    Validate an env file variable name.

    Raises:
        InvalidParameterError: If the name is not a valid shell identifier
    """
    if not name:
        raise InvalidParameterError("Variable name cannot be empty or None", stage="configure")

    if not isinstance(name, str):
        raise InvalidParameterError(f"Variable name must be a string, got {type(name)}", stage="configure")

    if not _VARIABLE_NAME_RE.fullmatch(name):
        raise InvalidParameterError(f"Variable name contains invalid characters: {name!r}", stage="configure")

    return name

def validate_destination(path: Union[str, "os.PathLike[str]"]) -> str:
    """
    Validate the destination path of the env file.

    Unlike the key parameters this does not create missing directories:
    a destination in a directory that does not exist is a write failure.

    Returns:
        Validated path as str

    Raises:
        EnvFileError: If the path is empty, contains a NUL byte or names
            a directory
    """
    if path is None:
        raise EnvFileError("Destination path cannot be None")

    path = os.fspath(path)
    if not isinstance(path, str):
        raise EnvFileError(f"Destination path must be a string, got {type(path)}")

    if len(path.strip()) == 0:
        raise EnvFileError("Destination path cannot be empty or whitespace only")

    if "\0" in path:
        raise EnvFileError("Destination path cannot contain a NUL byte")

    if os.path.isdir(path):
        raise EnvFileError(f"Destination path is a directory: {path}")

    return path
