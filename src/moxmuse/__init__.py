"""
MoxMuse Deck Tutor - consultation-driven Commander deck generation.

Components:
- consultation: the step-by-step preference wizard (separate package)
- generation: orchestrates the remote deck service and assembles the result
- web / CLI: HTTP and command-line surfaces over both
"""

__version__ = "0.3.0"
