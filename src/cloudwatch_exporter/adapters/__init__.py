"""Adapters for the provider, metadata index, config files and HTTP."""
