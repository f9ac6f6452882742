"""
Jungle Flip - A face-down 4x4 Jungle Chess variant.

Core principle: ONE authoritative state transition function.
Human input and the bot both submit actions through the same reducer.
"""

__version__ = "0.1.0"
