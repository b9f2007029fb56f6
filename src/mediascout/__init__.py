"""MediaScout: query generation and contact scoring for media contact discovery."""

__version__ = "0.1.0"
