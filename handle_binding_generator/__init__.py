"""
C++ RAII wrapper generator for C libraries built around opaque handles.
"""

__version__ = "0.1.0"
