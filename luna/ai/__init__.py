"""
Language model integration.
"""

from luna.ai.interpreter import DreamInterpreter, InterpretationError

__all__ = ["DreamInterpreter", "InterpretationError"]
