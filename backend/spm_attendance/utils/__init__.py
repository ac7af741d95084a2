"""Shared helpers, decorators and validators."""
