"""
Recipe Planner - chat-driven recipe generation, week plans and shopping lists.
"""

__version__ = "1.0.0"
