"""Order model, strict validation, cache-first service logic, metrics and a WSGI HTTP API."""

__version__ = "0.1.0"