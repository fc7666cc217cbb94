"""
synocli - manage encrypted shares on a Synology NAS.
"""

__version__ = "0.1.0"
