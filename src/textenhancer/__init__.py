# TextEnhancer - Shortcut-driven AI text enhancement

"""
Cross-platform desktop application that replaces the current text selection
with an LLM-enhanced version, optionally using a screenshot as context.
"""

__version__ = "0.1.0"
__app_name__ = "TextEnhancer"
