"""
RedeSegura - Constants and Reference Data
Static values used throughout the application.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional


# =============================================================================
# ENUMERATIONS
# =============================================================================

class Severity(str, Enum):
    """Hazard severity chosen by the reporter (or overridden by an admin)."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def _missing_(cls, value):
        # Records written by the first release store Portuguese values
        if isinstance(value, str):
            key = value.strip().upper()
            return cls.__members__.get(key) or _LEGACY_SEVERITY.get(key)
        return None


class ReportStatus(str, Enum):
    """Lifecycle status of a report."""
    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self is not ReportStatus.PENDING


class UserRole(str, Enum):
    """Role supplied by the identity provider."""
    USER = "USER"
    ADMIN = "ADMIN"


class Tier(str, Enum):
    """Certificate tiers, lowest first."""
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    DIAMOND = "DIAMOND"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().upper()
            return cls.__members__.get(key) or _LEGACY_TIER.get(key)
        return None


_LEGACY_SEVERITY: Dict[str, Severity] = {
    "BAIXA": Severity.LOW,
    "MEDIA": Severity.MEDIUM,
    "ALTA": Severity.HIGH,
}

_LEGACY_TIER: Dict[str, Tier] = {
    "PRATA": Tier.SILVER,
    "OURO": Tier.GOLD,
    "DIAMANTE": Tier.DIAMOND,
}


# =============================================================================
# HAZARD TYPES
# =============================================================================

HAZARD_TYPES: List[str] = [
    "Construção civil",
    "Máquinas agrícolas",
    "Poda",
    "Pipa",
    "Cabo no solo",
    "Poste danificado",
    "Veículos altos",
    "Outro",
]

# Advisory text stored on each report as ai_classification.
# Existing records carry these exact strings.
AI_CLASSIFICATIONS: Mapping[str, str] = MappingProxyType({
    "Construção civil": "Possível estrutura metálica próxima a cabos",
    "Máquinas agrícolas": "Veículo alto detectado próximo a rede",
    "Poda": "Vegetação próxima a rede elétrica",
    "Pipa": "Objeto voador detectado",
    "Cabo no solo": "Cabo energizado detectado",
    "Poste danificado": "Estrutura danificada detectada",
    "Veículos altos": "Veículo alto em movimento",
    "Outro": "Situação de risco identificada",
})

EDUCATIONAL_MESSAGES: Mapping[str, str] = MappingProxyType({
    "Construção civil": (
        "Em obras, mantenha andaimes, guindastes e vergalhões a pelo menos "
        "3 metros da rede elétrica."
    ),
    "Máquinas agrícolas": (
        "Ao operar máquinas altas, sempre verifique a altura da rede elétrica. "
        "Mantenha distância segura."
    ),
    "Poda": (
        "Nunca realize podas próximas à rede. Solicite poda técnica à "
        "concessionária."
    ),
    "Pipa": (
        "Evite empinar pipas próximo à rede elétrica. Use linhas sem material "
        "condutor."
    ),
    "Cabo no solo": (
        "Nunca toque em cabos caídos. Isole a área e acione imediatamente a "
        "concessionária."
    ),
    "Poste danificado": (
        "Postes danificados devem ser reportados imediatamente à "
        "concessionária para manutenção."
    ),
    "Veículos altos": (
        "Veículos com caçamba ou equipamentos elevados devem sempre verificar "
        "altura antes de passar sob a rede."
    ),
    "Outro": (
        "Mantenha sempre distância segura da rede elétrica. Em caso de dúvida, "
        "consulte a concessionária."
    ),
})

DEFAULT_CLASSIFICATION: str = AI_CLASSIFICATIONS["Outro"]
DEFAULT_EDUCATIONAL_MESSAGE: str = EDUCATIONAL_MESSAGES["Outro"]


# =============================================================================
# RISK SCORE
# =============================================================================

SEVERITY_BASE_SCORE: Mapping[Severity, int] = MappingProxyType({
    Severity.LOW: 30,
    Severity.MEDIUM: 60,
    Severity.HIGH: 90,
})

LOCATION_BONUS: int = 5
DESCRIPTION_BONUS: int = 5
DESCRIPTION_BONUS_MIN_LENGTH: int = 100  # strictly longer than this
MAX_RISK_SCORE: int = 100


# =============================================================================
# CERTIFICATE CRITERIA
# =============================================================================

@dataclass(frozen=True)
class TierCriteria:
    """Minimum validated-report counts for a certificate tier."""
    min_reports: int
    max_reports: Optional[int] = None  # informational only
    min_high_severity: int = 0

    def is_met(self, total: int, high_severity: int) -> bool:
        return total >= self.min_reports and high_severity >= self.min_high_severity


CERTIFICATE_CRITERIA: Mapping[Tier, TierCriteria] = MappingProxyType({
    Tier.BRONZE: TierCriteria(min_reports=1, max_reports=2),
    Tier.SILVER: TierCriteria(min_reports=3, max_reports=5),
    Tier.GOLD: TierCriteria(min_reports=6, max_reports=10, min_high_severity=2),
    Tier.DIAMOND: TierCriteria(min_reports=11, min_high_severity=3),
})

VERIFY_CODE_PREFIX: str = "RS"


# =============================================================================
# MAP
# =============================================================================

UNSPECIFIED_LOCATION: str = "Localização não especificada"
