"""
Analog clock: angle mapping, dial geometry, rendering and periodic refresh.

Modules:
- angle_mapper: instant -> hand angles (and back)
- face_geometry: hand angles -> drawable primitives
- renderer: primitives -> PNG (Pillow)
- refresh: background refresh loop (continuous or ambient)
"""
