"""
SelfID — Self-sovereign identity units with multi-party execution approval.
"""

__version__ = "0.1.0"
