"""Task engine for the board.

This package provides the task model, the file-backed store and the engine
that enforces the board's rules on top of it.
"""
