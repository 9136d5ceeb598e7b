"""
Study Slot Finder - availability and scheduling engine for study sessions.
"""

__version__ = "0.1.0"
