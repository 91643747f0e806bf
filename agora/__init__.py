"""Agora poll voting service."""

__version__ = "1.0.0"
