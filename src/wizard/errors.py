"""Domain-specific exceptions for wizard operations.

These exceptions are safe to import from API layers without pulling in the
classifier SDKs.
"""

from __future__ import annotations


class WizardError(Exception):
    status_code: int = 500
    default_detail: str = "Wizard error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class InvalidModelFileError(WizardError):
    status_code = 400
    default_detail = "Please upload a valid .ipynb file."


class UnsupportedAudioError(WizardError):
    status_code = 400
    default_detail = "Unsupported audio format."


class MicrophoneAccessDeniedError(WizardError):
    status_code = 403
    default_detail = "Microphone access denied."


class SessionNotFoundError(WizardError):
    status_code = 404
    default_detail = "Session not found."


class InvalidStepError(WizardError):
    status_code = 409
    default_detail = "Action not allowed in the current step."


class UploadTooLargeError(WizardError):
    status_code = 413
    default_detail = "Uploaded file is too large."


class ClassificationFailedError(WizardError):
    status_code = 502
    default_detail = "Classification failed. Please check your API key or internet connection."
