"""Shared library dependency discovery."""
