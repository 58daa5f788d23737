"""
Content Organiser: content planning dashboard
"""
__version__ = "0.1.0"
