"""Quiz Scoring Forms: multi-step quiz form engine."""

__version__ = "1.0.0"
