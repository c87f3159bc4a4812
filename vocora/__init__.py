"""
Vocora - vocabulary practice with generated stories and hover definitions
"""

__version__ = "1.0.0"
