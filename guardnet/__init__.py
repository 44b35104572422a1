"""GuardNet: client-side hybrid phishing risk scoring."""

__version__ = "1.0.0"
