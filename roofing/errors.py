"""
Error taxonomy for roof measurement extraction and presets.

Only UnreadableDocumentError and InvalidPresetImportError ever reach callers
of the pipeline; the rest degrade to warnings.
"""


class RoofingError(Exception):
    """Base class for all roofing engine errors."""


class UnreadableDocumentError(RoofingError):
    """The PDF bytes are corrupt, encrypted, or have no text layer."""

    USER_MESSAGE = "Could not read PDF — try re-exporting from the measurement provider"

    def __init__(self, reason: str = ""):
        self.reason = reason
        message = self.USER_MESSAGE
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class FieldNotFoundError(RoofingError):
    """A measurement field had no matching rule. Internal to the extractor."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"No extraction rule matched field '{field_name}'")


class InconsistentMeasurementWarning(UserWarning):
    """Cross-field check failed. Recorded as a warning string, never raised."""


class InvalidPresetImportError(RoofingError):
    """A preset document is missing required factors or has out-of-range values."""

    def __init__(self, problems):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("Invalid preset: " + "; ".join(self.problems))


class PresetError(RoofingError):
    """Unknown preset, or an attempt to modify a built-in preset."""
