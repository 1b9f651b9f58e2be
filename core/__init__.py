"""
Kronos Clock Core Package.

This package contains the business operations of the application,
separated from the web layer.

ARCHITECTURE RULES:
- core/ modules may only import from:
  - Python standard library
  - utils/
  - clock/ and timesync/
  - config (for global configuration)

- core/ modules MUST NOT import from:
  - web/ (no Flask dependencies)
  - flask, werkzeug, or any web-specific packages
"""

__all__ = [
    "clock_core",
    "settings_core",
    "watches_core",
    "zones_core",
]
