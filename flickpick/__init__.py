"""
FlickPick - mood-driven movie recommendations with an AI movie buddy.
"""

__version__ = "1.0.0"
