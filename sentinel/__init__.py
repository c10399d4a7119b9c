"""
Module: sentinel.__init__

Guarded shell execution for tool-calling language models.
"""

__version__ = "0.1.0"
