"""
Shell formula — build, install, register and verify a shell binary.
"""

__version__ = "0.1.0"
