"""
parcel — artifact lifecycle orchestrator.

Fetches, verifies, builds and installs Python source distributions from a
local mirror, and keeps parcel's own requirements up to date.
"""

__version__ = "0.1.0"
