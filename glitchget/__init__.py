"""
GlitchGet - resumable transfer client for servers that cut responses short.
"""

__version__ = "1.0.0"
