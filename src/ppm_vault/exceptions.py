"""
Vault Exception Classes
"""


class VaultError(Exception):
    """Base exception for vault operations"""
    pass


class ValidationError(VaultError):
    """Raised when a required field (service name, magic number) is empty"""
    pass


class NotFound(VaultError):
    """Raised when a service is not in the vault"""

    def __init__(self, service: str):
        super().__init__(f"Service not found: {service}")
        self.service = service


class DecryptionFailed(VaultError):
    """Raised when stored envelopes cannot be opened with the given magic number"""

    def __init__(self, service: str, reason: str = "wrong magic number"):
        super().__init__(f"Decryption failed for {service}: {reason}")
        self.service = service
        self.reason = reason


class ParseError(VaultError):
    """Raised when an import document is malformed; nothing is merged"""
    pass
