"""
packflow: declarative packaging task runner (copy / replace / run).
"""

__version__ = "0.1.0"
