"""Mediabox: upload service for images, audio and video."""

__version__ = "1.0.0"
