"""Route modules exposed by the API package."""

from . import ping, scanner, tickets, verification

__all__ = ["ping", "scanner", "tickets", "verification"]
