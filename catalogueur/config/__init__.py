"""Configuration loading, validation and per-backend settings."""
