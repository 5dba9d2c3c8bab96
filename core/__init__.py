"""
Core utilities and configuration for the ad metrics ingestion service.

Modules:
    config: Application configuration and environment variable management
    credentials: Workload identity federation and BigQuery token caching
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.credentials import CredentialBroker
    from core.exceptions import SourceFetchError, LoadJobError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "setup_logging",
    "CredentialBroker",
    # Exceptions
    "IngestionError",
    "ConfigurationError",
    "CredentialExchangeError",
    "ExtractionError",
    "SourceFetchError",
    "AuthenticationError",
    "RateLimitError",
    "LoadError",
    "LoadJobError",
]
