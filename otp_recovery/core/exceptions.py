from typing import Dict, List, Optional


class AppException(Exception):
    """Base application exception"""

    def __init__(self, message: str, code: str = "APP_ERROR", status_code: int = 400):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppException):
    """Per-field validation failure, recoverable by resubmission"""

    def __init__(self, message: str = "Validation failed", field: Optional[str] = None):
        super().__init__(message, "VALIDATION_ERROR", 422)
        self.field = field

    @property
    def errors(self) -> Dict[str, List[str]]:
        if self.field is None:
            return {}
        return {self.field: [self.message]}


class InvalidCodeError(ValidationError):
    """No pending verification matched, or the code failed the TOTP check.

    Both cases share one message so a caller cannot tell an unknown target
    from a wrong code.
    """

    def __init__(self):
        super().__init__("Invalid code", field="code")


class ConfigurationError(AppException):
    """Malformed verification record data"""

    def __init__(self, message: str = "Invalid verification configuration"):
        super().__init__(message, "CONFIGURATION_ERROR", 500)


class UnsupportedAlgorithmError(ConfigurationError):
    """HMAC algorithm outside the supported set"""

    def __init__(self, algorithm: str):
        super().__init__(f"Unsupported OTP algorithm: {algorithm!r}")
        self.algorithm = algorithm


class InvariantViolationError(AppException):
    """Store and identity records disagree; the request cannot continue"""

    def __init__(self, message: str = "Invariant violation"):
        super().__init__(message, "INVARIANT_VIOLATION", 500)
