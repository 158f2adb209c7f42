"""Customer-support email triage: classify, draft replies, review."""

__version__ = "0.1.0"
