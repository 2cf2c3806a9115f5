import pytest

from crx_analyzer.models import PermissionFinding, RiskTier, Vulnerability
from crx_analyzer.risk_scorer import (
    calculate_detailed_risk,
    cve_count_term,
    cvss_term,
    get_risk_level,
    permission_term,
)


def finding(risk, permission='p'):
    return PermissionFinding(permission=permission, risk=risk, description='')


def vuln(cve_id, score):
    return Vulnerability(id=cve_id, severity=RiskTier.HIGH, description='', score=score)


def test_empty_mv3_scores_zero():
    risk = calculate_detailed_risk([], [], manifest_version=3, obfuscation_score=0)
    assert risk.score == 0
    assert risk.level == RiskTier.LOW
    assert risk.equation == 'Risk = Permissions(0.0) + CVEs(0.0) + CVSS(0.0) + MV3(0.0) + Obf(0.0)'


def test_permission_term_is_capped():
    assert permission_term([finding(RiskTier.CRITICAL)] * 10) == 40
    assert permission_term([finding(RiskTier.HIGH), finding(RiskTier.MEDIUM), finding(RiskTier.LOW)]) == 7.5

    risk = calculate_detailed_risk([finding(RiskTier.CRITICAL)] * 10, [], 3, 0)
    assert risk.score == 40
    assert risk.level == RiskTier.MEDIUM


def test_cve_terms():
    assert cve_count_term([vuln(f'CVE-{i}', 5.0) for i in range(7)]) == 20
    assert cve_count_term([vuln('CVE-1', 5.0), vuln('CVE-1', 5.0)]) == 4
    assert cvss_term([]) == 0
    assert cvss_term([vuln('CVE-1', 10.0)]) == pytest.approx(25)
    assert cvss_term([vuln('CVE-1', 12.0)]) == pytest.approx(25)
    assert cvss_term([Vulnerability(id='CVE-1', severity=RiskTier.LOW, description='')]) == 0


def test_combined_score():
    risk = calculate_detailed_risk([finding(RiskTier.CRITICAL, '<all_urls>')], [vuln('CVE-2021-0001', 9.8)],
                                   manifest_version=2, obfuscation_score=10)
    assert risk.score == 54
    assert risk.level == RiskTier.HIGH
    assert risk.equation == 'Risk = Permissions(10.0) + CVEs(4.0) + CVSS(24.8) + MV2(5.0) + Obf(10.0)'
    assert set(risk.breakdown) == {'permissions', 'cves', 'cvss', 'manifest', 'obfuscation'}


def test_score_is_capped_at_100():
    risk = calculate_detailed_risk([finding(RiskTier.CRITICAL)] * 5,
                                   [vuln(f'CVE-{i}', 10.0) for i in range(6)], 2, 10)
    assert risk.score == 100
    assert risk.level == RiskTier.CRITICAL


def test_half_points_round_up():
    risk = calculate_detailed_risk([finding(RiskTier.LOW)], [], 3, 0)
    assert risk.score == 1


@pytest.mark.parametrize('score, level', [
    (0, RiskTier.LOW),
    (24, RiskTier.LOW),
    (25, RiskTier.MEDIUM),
    (49, RiskTier.MEDIUM),
    (50, RiskTier.HIGH),
    (74, RiskTier.HIGH),
    (75, RiskTier.CRITICAL),
    (100, RiskTier.CRITICAL),
])
def test_risk_levels(score, level):
    assert get_risk_level(score) == level
