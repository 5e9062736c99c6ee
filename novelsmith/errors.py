"""Exception types raised across the generation pipeline."""


class NovelsmithError(Exception):
    """Base class for all novelsmith errors."""


class ConfigError(NovelsmithError):
    """Configuration is missing or unusable (e.g. no API key)."""


class ServiceError(NovelsmithError):
    """The text-generation service failed (network, auth, quota).

    Never retried here; it surfaces to whichever stage issued the call.
    """

    def __init__(self, message: str, provider: str = "", cause: Exception | None = None):
        super().__init__(message)
        self.provider = provider
        self.cause = cause


class ParseError(NovelsmithError):
    """Model output did not match the structure a stage expected."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ValidationGap(NovelsmithError):
    """A skeleton validation row referenced an id with no matching placeholder."""

    def __init__(self, validation_id: str, matched_unit_id: str | None = None):
        if matched_unit_id:
            message = (
                f"Validation '{validation_id}' has no matching unit; "
                f"paired positionally with '{matched_unit_id}'"
            )
        else:
            message = f"Validation '{validation_id}' has no matching unit; dropped"
        super().__init__(message)
        self.validation_id = validation_id
        self.matched_unit_id = matched_unit_id
