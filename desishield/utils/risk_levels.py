"""
Risk band utilities.
The band is derived from the classifier score for display emphasis only; it is
never stored alongside the result.
"""

from typing import Optional

from desishield.config import settings
from desishield.schemas.analysis_schemas import RiskBand


def derive_risk_band(
    score: int,
    high_threshold: Optional[int] = None,
    medium_threshold: Optional[int] = None,
) -> RiskBand:
    """
    Derive the risk band from a 0-100 score.

    Args:
        score: The classifier risk score (0-100)
        high_threshold: Score >= this = HIGH (default from config)
        medium_threshold: Score >= this = MEDIUM (default from config)

    Returns:
        RiskBand.LOW, RiskBand.MEDIUM or RiskBand.HIGH
    """
    high = high_threshold if high_threshold is not None else settings.high_risk_threshold
    medium = medium_threshold if medium_threshold is not None else settings.medium_risk_threshold

    if score >= high:
        return RiskBand.HIGH
    elif score >= medium:
        return RiskBand.MEDIUM
    else:
        return RiskBand.LOW


# Streamlit color names per band, used by the result card
BAND_COLORS = {
    RiskBand.LOW: "green",
    RiskBand.MEDIUM: "orange",
    RiskBand.HIGH: "red",
}


def band_color(score: int) -> str:
    return BAND_COLORS[derive_risk_band(score)]
