"""Multi-tenant product catalog engine."""

__version__ = "0.1.0"
