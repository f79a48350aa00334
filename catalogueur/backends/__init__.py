"""Catalog search backends (one per remote catalog)."""
