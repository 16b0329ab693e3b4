"""Bedrock idle bot package.

Purpose: Keep one bot account online on a Bedrock server: answer a few chat
commands, announce idle periods on a timer, and reconnect after drops.

"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
