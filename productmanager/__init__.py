"""
Product Manager - product and category catalog service.
"""

__version__ = "1.0.0"
