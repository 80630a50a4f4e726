"""Configuration module for Tangoroid."""

from .settings import Config

__all__ = ['Config']
