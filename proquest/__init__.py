"""
ProQuest - Game-gated task completion engine.

Tasks are only marked complete after the player wins a short mini-game.
The engine provides:
- Task lifecycle and experience/level/streak progression
- Achievement evaluation
- Deterministic mini-games with heuristic opponents
- Session loading and persistence of user progress
"""

__version__ = "0.1.0"
