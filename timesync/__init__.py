"""
Watch time synchronization: trusted clocks, the watch registry and offset
tracking.
"""
