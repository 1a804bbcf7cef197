"""
Support package for tinyrecord.

Holds pure helpers with no store access, such as the naming inflector.
"""

from tinyrecord.support import inflector

__all__ = ["inflector"]
