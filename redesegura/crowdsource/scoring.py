"""
Risk scoring and advisory classification for new reports
Computed once, when a citizen submits a report
"""

from typing import Optional, Union

from redesegura.core.constants import (
    AI_CLASSIFICATIONS,
    EDUCATIONAL_MESSAGES,
    DEFAULT_CLASSIFICATION,
    DEFAULT_EDUCATIONAL_MESSAGE,
    SEVERITY_BASE_SCORE,
    LOCATION_BONUS,
    DESCRIPTION_BONUS,
    DESCRIPTION_BONUS_MIN_LENGTH,
    MAX_RISK_SCORE,
    Severity,
)


def calculate_risk_score(
    severity: Union[Severity, str],
    has_location: bool,
    description_length: int
) -> int:
    """
    Calculate the 0-100 risk score of a report.

    Args:
        severity: Reported severity (LOW, MEDIUM, HIGH)
        has_location: Whether GPS coordinates were captured
        description_length: Number of characters in the description

    Returns:
        Risk score, never above 100
    """
    score = SEVERITY_BASE_SCORE[Severity(severity)]

    if has_location:
        score += LOCATION_BONUS
    if description_length > DESCRIPTION_BONUS_MIN_LENGTH:
        score += DESCRIPTION_BONUS

    return min(score, MAX_RISK_SCORE)


def get_ai_classification(hazard_type: Optional[str]) -> str:
    """Advisory classification text for a hazard type."""
    if hazard_type and hazard_type in AI_CLASSIFICATIONS:
        return AI_CLASSIFICATIONS[hazard_type]
    return DEFAULT_CLASSIFICATION


def get_educational_message(hazard_type: Optional[str]) -> str:
    """Safety tip shown to the reporter after submission."""
    if hazard_type and hazard_type in EDUCATIONAL_MESSAGES:
        return EDUCATIONAL_MESSAGES[hazard_type]
    return DEFAULT_EDUCATIONAL_MESSAGE
