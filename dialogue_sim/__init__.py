"""
Dialogue Simulator

Turn-based conversations between simulated agents. Each agent holds
evidence-based beliefs about itself and others; conversations pick their
moves from a graph of move definitions under the pressure of obligations,
topics and goals, and what gets said becomes evidence.
"""

__version__ = "0.1.0"
