"""Thread-safe components for filtering, tracking and reporting configuration drift."""

__version__ = "0.1.0"