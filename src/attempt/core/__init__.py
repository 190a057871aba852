"""Core building blocks for attempt.

Holds the explicit two-case outcome type and the argument validation helpers
shared by ``Try`` and the dataflow blocks.
"""
