"""
Session slot finder and assistant workflows for a rehabilitation-robot clinic.
"""

__version__ = "0.1.0"
