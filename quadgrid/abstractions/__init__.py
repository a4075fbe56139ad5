"""Abstractions layer: value types and interfaces shared by every component."""
