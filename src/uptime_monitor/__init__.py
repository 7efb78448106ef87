"""Uptime monitor — service registry, periodic health checks, CRUD API."""

__version__ = "0.1.0"
