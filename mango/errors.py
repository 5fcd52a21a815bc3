"""
Error taxonomy shared by the API and the wizard.

Each error carries the HTTP status it maps to and an optional provider detail
string that is passed through to the JSON body as ``details``.
"""
from typing import Any, Dict, List, Optional


class MangoError(Exception):
    status_code = 500
    message = "Unexpected error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationFailed(MangoError):
    status_code = 400
    message = "Invalid request"


class MissingInput(ValidationFailed):
    message = "Transcript and instruction are required."


class NoRecipients(ValidationFailed):
    message = "At least one recipient is required."


class TooManyRecipients(ValidationFailed):
    message = "Too many recipients."


class InvalidRecipient(ValidationFailed):
    message = "Invalid email address."


class UploadTooLarge(ValidationFailed):
    message = "File too large"


class UnsupportedFileType(MangoError):
    status_code = 400
    message = "Unsupported file type"


class UpstreamProviderFailed(MangoError):
    status_code = 500
    message = "Upstream provider failed"


class ExtractionFailed(UpstreamProviderFailed):
    message = "Failed to extract text"


class SummarizationFailed(UpstreamProviderFailed):
    message = "Failed to generate summary"


class SendFailed(UpstreamProviderFailed):
    message = "Failed to send email"


class ConfigurationMissing(Exception):
    """Raised at startup when required settings are absent."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")
