class TextSaverError(Exception):
    """Base class for failures that map onto an HTTP status."""

    http_status = 500


class ValidationError(TextSaverError):
    http_status = 400


class ConfigurationError(TextSaverError):
    http_status = 500


class CompletionError(TextSaverError):
    http_status = 500


class StorageError(TextSaverError):
    http_status = 500
