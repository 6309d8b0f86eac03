"""
Strongly typed configuration using pydantic-settings.

All settings are validated at startup and loaded from:
1. Default values defined here
2. .env file (if present)
3. Environment variables (highest priority)

Environment variable naming:
- TournamentSettings: TOURNAMENT_QUESTION_COUNT, TOURNAMENT_TIE_BREAK, etc.
- ScoringSettings: SCORING_MAX_MULTIPLIER, SCORING_TIME_BONUS_CAP, etc.
- QuestionBankSettings: QUESTIONS_GRADE_TOLERANCE, QUESTIONS_BANK_PATH, etc.
- ObservabilitySettings: ENVIRONMENT, LOG_LEVEL (no prefix)
"""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path


class TournamentSettings(BaseSettings):
    """Bracket play settings."""
    
    model_config = SettingsConfigDict(env_prefix="TOURNAMENT_")
    
    # Questions allotted to every match
    question_count: int = Field(default=10, ge=1, le=50, description="Questions per match")
    
    # Timer
    enable_timer: bool = Field(default=True)
    time_per_question: int = Field(default=30, ge=5, le=300, description="Seconds per question")
    
    # Exact ties go to this slot
    tie_break: str = Field(default="participant1", pattern="^(participant1|participant2)$")


class ScoringSettings(BaseSettings):
    """Answer scoring settings."""
    
    model_config = SettingsConfigDict(env_prefix="SCORING_")
    
    streak_step: float = Field(default=0.1, ge=0.0, le=1.0, description="Multiplier gained per streak step")
    max_multiplier: float = Field(default=3.0, ge=1.0, le=10.0, description="Streak multiplier cap")
    time_bonus_cap: int = Field(default=50, ge=0, le=500, description="Bonus for an instant answer")
    carry_streak_in_tournament: bool = Field(
        default=False,
        description="Track answer streaks inside tournament matches"
    )


class QuestionBankSettings(BaseSettings):
    """Question bank settings."""
    
    model_config = SettingsConfigDict(env_prefix="QUESTIONS_")
    
    bank_path: Optional[Path] = Field(default=None, description="JSON, CSV or Parquet question bank")
    default_subject: str = Field(default="math")
    grade_tolerance: int = Field(default=1, ge=0, le=12, description="Accepted grade level distance")


class QuickMatchSettings(BaseSettings):
    """Free-for-all settings."""
    
    model_config = SettingsConfigDict(env_prefix="QUICKMATCH_")
    
    min_players: int = Field(default=2, ge=2)
    max_players: int = Field(default=6, ge=2, le=12)
    question_count: int = Field(default=10, ge=1, le=100)
    
    @field_validator('max_players')
    @classmethod
    def max_players_gte_min(cls, v, info):
        if 'min_players' in info.data and v < info.data['min_players']:
            raise ValueError('max_players must be >= min_players')
        return v


class ObservabilitySettings(BaseSettings):
    """Logging and metrics settings."""
    
    model_config = SettingsConfigDict(env_prefix="")  # Direct: ENVIRONMENT, LOG_LEVEL
    
    environment: str = Field(default="development", pattern="^(development|staging|production)$")
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = Field(default="console", pattern="^(console|json)$")
    enable_metrics: bool = Field(default=True)


class Settings(BaseSettings):
    """
    Root settings aggregating all subsections.
    
    Usage:
        from quizbracket.config import settings
        
        settings.tournament.question_count
        settings.scoring.max_multiplier
        settings.observability.log_level
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    tournament: TournamentSettings = Field(default_factory=TournamentSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    questions: QuestionBankSettings = Field(default_factory=QuestionBankSettings)
    quick_match: QuickMatchSettings = Field(default_factory=QuickMatchSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    