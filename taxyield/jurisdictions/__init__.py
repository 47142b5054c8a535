"""Jurisdiction adapters and the registry that looks them up by code."""
