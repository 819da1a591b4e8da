"""
Lead-capture form backend: validation, sanitization and perimeter defenses.
"""

__version__ = "1.0.0"
