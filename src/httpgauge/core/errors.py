"""Exception hierarchy for httpgauge."""


class HttpGaugeError(Exception):
    """Base class for all httpgauge errors."""


class ConfigError(HttpGaugeError):
    """Invalid configuration. Fatal at startup."""


class ScheduleError(ConfigError):
    """A schedule is neither a valid cron expression nor a known phrase."""


class FetchError(HttpGaugeError):
    """The target could not be fetched (network error, timeout, bad status)."""


class ExtractionError(HttpGaugeError):
    """A single rule failed. Sibling rules are unaffected."""


class QueryError(ExtractionError):
    """The jq evaluator rejected the document or failed at runtime."""


class PatternMismatchError(ExtractionError):
    """The regular expression did not match the response body."""


class NumberParseError(ExtractionError):
    """Extracted text is not a number."""
