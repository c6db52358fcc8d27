"""Smart Energy Sync - cache smart meter consumption and tariff history locally."""

__version__ = "0.1.0"
