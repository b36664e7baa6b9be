"""
PrizmLink Matrix Studio.

Animation editing core (prizm.matrix), device link (prizm.device), animation
library (prizm.library) and a device emulator (prizm.api).
"""

__version__ = '0.1.0'
