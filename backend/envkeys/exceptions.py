"""
Custom exceptions for the envkeys provisioning library

Each exception records the pipeline stage it was raised from so callers
(the CLI in particular) can report which step failed.
"""

class KeyProvisioningError(Exception):
    """Base exception for all provisioning errors"""
    stage = "provision"

    def __init__(self, message, stage=None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage

class InvalidParameterError(KeyProvisioningError, ValueError):
    """Raised when a key size, profile or variable name is invalid"""
    stage = "generate"

class ConfigurationError(KeyProvisioningError):
    """Raised when settings read from the environment are invalid"""
    stage = "configure"

class EncodingError(KeyProvisioningError):
    """Raised when key material cannot be converted to or from bytes/text"""
    stage = "encode"

class EnvFileError(KeyProvisioningError, OSError):
    """Raised when the destination env file cannot be written"""
    stage = "write"

class KeyGenerationTimeout(KeyProvisioningError, TimeoutError):
    """Raised when key generation exceeds its wall-clock budget"""
    stage = "generate"

class KeyLoadError(KeyProvisioningError):
    """Raised when provisioned key material cannot be found"""
    stage = "load"

class VerificationError(KeyProvisioningError):
    """Raised when a provisioned key pair fails its self-check"""
    stage = "check"
