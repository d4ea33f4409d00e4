"""Kangaroo - a custodial Layer 2 tipping wallet driven by chat commands.

Users hold a token wallet on a Layer 2 network and move value with short,
stateless commands. Every transfer is previewed first and only executed
when the same command is re-issued with ``confirm``.
"""

__version__ = "0.3.0"
