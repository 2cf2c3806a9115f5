"""
Risk Scorer
Combines permission, vulnerability, manifest and obfuscation findings into
an explainable 0-100 score
"""

import math

from .models import RiskAssessment, RiskTier
from .utils import round_half_up

PERMISSION_WEIGHTS = {
    RiskTier.CRITICAL: 10,
    RiskTier.HIGH: 5,
    RiskTier.MEDIUM: 2,
    RiskTier.LOW: 0.5,
}
PERMISSION_CAP = 40
CVE_COUNT_WEIGHT = 4
CVE_COUNT_CAP = 20
CVSS_CAP = 25
LEGACY_MANIFEST_PENALTY = 5
MAX_RISK_SCORE = 100

# (minimum score, level), highest first
RISK_LEVEL_THRESHOLDS = (
    (75, RiskTier.CRITICAL),
    (50, RiskTier.HIGH),
    (25, RiskTier.MEDIUM),
)


def permission_term(permissions):
    raw = sum(PERMISSION_WEIGHTS[finding.risk] for finding in permissions)
    return min(PERMISSION_CAP, raw)


def cve_count_term(vulnerabilities):
    distinct = {vulnerability.id for vulnerability in vulnerabilities}
    return min(CVE_COUNT_CAP, CVE_COUNT_WEIGHT * len(distinct))


def cvss_term(vulnerabilities):
    """Log-scaled highest CVSS: 0 -> 0, 10 -> 25"""
    highest = max((v.score for v in vulnerabilities if v.score is not None), default=0.0)
    highest = min(10.0, max(0.0, highest))
    return min(CVSS_CAP, CVSS_CAP * math.log10(highest + 1) / math.log10(11))


def manifest_term(manifest_version):
    return LEGACY_MANIFEST_PENALTY if manifest_version == 2 else 0


def get_risk_level(score):
    """Convert a 0-100 risk score to a level"""
    for minimum, level in RISK_LEVEL_THRESHOLDS:
        if score >= minimum:
            return level
    return RiskTier.LOW


def calculate_detailed_risk(permissions, vulnerabilities, manifest_version, obfuscation_score):
    """
    Score an extension

    Risk = Permissions (0-40) + CVE count (0-20) + highest CVSS (0-25)
           + MV2 penalty (5) + obfuscation (0/5/10), capped at 100

    Args:
        permissions (list): PermissionFinding items
        vulnerabilities (list): Vulnerability items
        manifest_version (int): 2 or 3
        obfuscation_score (int): 0, 5 or 10 from the source scanner

    Returns:
        RiskAssessment: Rounded score, level, equation and per-term breakdown
    """
    breakdown = {
        'permissions': permission_term(permissions),
        'cves': cve_count_term(vulnerabilities),
        'cvss': cvss_term(vulnerabilities),
        'manifest': manifest_term(manifest_version),
        'obfuscation': max(0, obfuscation_score),
    }

    total = min(MAX_RISK_SCORE, sum(breakdown.values()))
    score = round_half_up(total)

    equation = (
        f"Risk = Permissions({breakdown['permissions']:.1f})"
        f" + CVEs({breakdown['cves']:.1f})"
        f" + CVSS({breakdown['cvss']:.1f})"
        f" + MV{manifest_version}({breakdown['manifest']:.1f})"
        f" + Obf({breakdown['obfuscation']:.1f})"
    )

    return RiskAssessment(
        score=score,
        level=get_risk_level(score),
        equation=equation,
        breakdown={name: round(value, 2) for name, value in breakdown.items()},
    )
