"""Claim document upload links and requirement assignment service."""

__version__ = "0.1.0"
