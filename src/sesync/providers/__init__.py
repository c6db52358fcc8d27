"""Remote energy data providers."""

from sesync.providers.base import EnergyDataProvider
from sesync.providers.factory import build_provider
from sesync.providers.glowmarkt import GlowmarktDataProvider
from sesync.providers.n3rgy import N3rgyDataProvider

__all__ = ["EnergyDataProvider", "GlowmarktDataProvider", "N3rgyDataProvider", "build_provider"]
