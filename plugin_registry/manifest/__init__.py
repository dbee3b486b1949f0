"""Manifest admission rules for third-party plugins."""
