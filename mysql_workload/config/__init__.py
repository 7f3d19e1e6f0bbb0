"""Configuration defaults and logging setup."""
