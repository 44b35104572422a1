"""Exceptions raised by the scoring pipeline."""


class ParseError(ValueError):
    """The URL could not be parsed into scheme + hostname."""


class ModelUnavailable(RuntimeError):
    """A parameter blob (primary model, forest or scaler) failed to load."""


class ScoringFailure(RuntimeError):
    """The mandatory primary scorer could not produce a score."""
