"""
Life Assistant - AI Insight & Command Core

The decision-making core of a personal life-management app
(finance, todos, habits, diary, savings).

DESIGN PRINCIPLES:
1. Scores are computed, never guessed
2. Ambiguity is asked about, never silently resolved
3. A command either fully succeeds or changes nothing
4. Every step must be auditable
5. Storage and the LLM are collaborators behind interfaces
"""

__version__ = "1.0.0"
__author__ = "Life Assistant Team"
