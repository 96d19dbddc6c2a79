"""Ticket verification and check-in service for NFT event tickets."""

__version__ = "0.1.0"
