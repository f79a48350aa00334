"""Storefront order history crawling and record deduplication."""
