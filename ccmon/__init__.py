"""
ccmon - Claude Code usage metrics query and aggregation engine.
"""

__version__ = "0.1.0"
