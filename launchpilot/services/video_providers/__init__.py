"""Vendor-specific VideoProvider implementations."""

from .did_provider import DIDProvider
from .runway_provider import RunwayProvider

__all__ = ["DIDProvider", "RunwayProvider"]
