"""
QuizCup - classroom quiz tournaments.
"""
from .models import Bracket, Match, Player, Question, Response, Round, Team

__version__ = "1.0.0"

__all__ = ["Bracket", "Match", "Player", "Question", "Response", "Round", "Team"]
