"""
Data models shared by the analysis pipeline
Pydantic models so results serialize straight to JSON reports and API responses
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RiskTier(str, Enum):
    """Ordered risk tier: Low < Medium < High < Critical"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self):
        return _TIER_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, RiskTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, RiskTier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, RiskTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, RiskTier):
            return NotImplemented
        return self.rank >= other.rank


_TIER_ORDER = [RiskTier.LOW, RiskTier.MEDIUM, RiskTier.HIGH, RiskTier.CRITICAL]


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ExtensionManifest(_FrozenModel):
    """Resolved view of manifest.json"""
    name: str
    version: str
    manifest_version: int = 2
    description: str = ""
    permissions: List[str] = Field(default_factory=list)
    host_permissions: List[str] = Field(default_factory=list)
    icons: Dict[str, str] = Field(default_factory=dict)
    default_locale: Optional[str] = None
    icon: Optional[str] = None


class PermissionFinding(_FrozenModel):
    permission: str
    risk: RiskTier
    description: str


class Vulnerability(_FrozenModel):
    id: str
    severity: RiskTier
    description: str
    score: Optional[float] = None


class ScanSignals(_FrozenModel):
    """Everything the source scanner extracts from the bundled code"""
    api_calls: List[str] = Field(default_factory=list)
    secrets: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    is_obfuscated: bool = False
    obfuscation_score: int = 0
    js_file_count: int = 0
    average_entropy: float = 0.0
    unreadable_files: List[str] = Field(default_factory=list)


class ReputationData(_FrozenModel):
    """Store-side metadata supplied by the caller (never fetched by the engine)"""
    publisher: str = ""
    rating: float = 0.0
    rating_count: int = 0
    user_count: str = ""
    last_updated: str = ""
    is_featured: bool = False
    is_verified_publisher: bool = False


class RiskAssessment(_FrozenModel):
    score: int
    level: RiskTier
    equation: str
    breakdown: Dict[str, float] = Field(default_factory=dict)


class AnalysisResult(_FrozenModel):
    """Immutable outcome of one extension analysis"""
    name: str
    version: str
    icon: Optional[str] = None
    manifest_version: int
    permissions: List[PermissionFinding]
    api_calls: List[str]
    secrets: List[str]
    dependencies: List[str]
    vulnerabilities: List[Vulnerability]
    risk_score: int
    risk_level: RiskTier
    risk_equation: str
    is_obfuscated: bool
    obfuscation_score: int
    reputation: Optional[ReputationData] = None
    reputation_score: Optional[int] = None
