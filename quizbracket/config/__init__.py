"""
Configuration module with strongly typed settings.

Usage:
    from quizbracket.config import settings
    
    print(settings.tournament.question_count)
    print(settings.scoring.time_bonus_cap)
"""
from .settings import (
    Settings,
    TournamentSettings,
    ScoringSettings,
    QuestionBankSettings,
    QuickMatchSettings,
    ObservabilitySettings,
)

# Singleton instance - validates on import
settings = Settings()

__all__ = [
    "settings",
    "Settings",
    "TournamentSettings",
    "ScoringSettings",
    "QuestionBankSettings",
    "QuickMatchSettings",
    "ObservabilitySettings",
]
