from .clipboard import Clipboard
from .text_output import TextOutputController

__all__ = ["Clipboard", "TextOutputController"]
