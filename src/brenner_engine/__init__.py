"""
Brenner Engine - hypothesis evaluation for discriminative research sessions.

Tracks competing hypotheses through a kill/confirm lifecycle, binds observed
test outcomes to lifecycle suggestions, and scores contributions and sessions
against a fixed methodological rubric.
"""

__version__ = "0.1.0"
