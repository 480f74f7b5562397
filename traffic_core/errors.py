"""Error types shared across the traffic core."""


class ConfigurationError(ValueError):
    """Invalid catalog, policy or settings. Raised before the scheduler starts."""
