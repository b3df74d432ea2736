"""Strategy package.

This package encapsulates the host side of script strategies:
- Strategy contract and the script bridge (adapter over script objects)
- Module loading into the script runtime
- Runtime lifecycle and host wiring
- Static preflight of strategy scripts
"""
