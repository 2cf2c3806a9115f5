"""
Vulnerability Checker
Maps detected third-party libraries to a small static table of known CVEs
"""

from .models import RiskTier, Vulnerability

# (dependency-name substring, CVE record); matched case-insensitively
KNOWN_VULNERABILITIES = (
    ('jquery', Vulnerability(
        id='CVE-2020-11022',
        severity=RiskTier.MEDIUM,
        score=6.1,
        description='Regex in jQuery.htmlPrefilter potentially leads to XSS.',
    )),
    ('lodash', Vulnerability(
        id='CVE-2020-8203',
        severity=RiskTier.HIGH,
        score=7.4,
        description='Prototype pollution in lodash via merge and zipObjectDeep.',
    )),
)


def detect_vulnerabilities(dependencies, table=KNOWN_VULNERABILITIES):
    """
    Match dependencies against the CVE table

    Args:
        dependencies (list): Library filenames found by the source scanner
        table (tuple): (name substring, Vulnerability) pairs

    Returns:
        list: Vulnerabilities de-duplicated by CVE id, first match wins
    """
    found = {}
    for dependency in dependencies:
        dep_lower = dependency.lower()
        for needle, vulnerability in table:
            if needle in dep_lower and vulnerability.id not in found:
                found[vulnerability.id] = vulnerability
    return list(found.values())
