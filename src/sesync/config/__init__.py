"""Configuration for Smart Energy Sync."""
