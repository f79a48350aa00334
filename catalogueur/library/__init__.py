"""Readers for locally installed launcher libraries."""
