"""Strategy host: runs script-resident trading strategies against a simulated order server."""

__version__ = "0.1.0"
