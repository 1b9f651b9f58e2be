"""
Kronos Clock Web Blueprints Package.

This package contains Flask Blueprints for modular route organization.
"""

__all__ = ["api_v1"]
