"""Configuration for scriptgate."""
