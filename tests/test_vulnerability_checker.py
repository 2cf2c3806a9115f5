from crx_analyzer.models import RiskTier, Vulnerability
from crx_analyzer.vulnerability_checker import detect_vulnerabilities


def test_jquery_and_lodash():
    found = detect_vulnerabilities(['jquery-3.4.1.min.js', 'lodash.js', 'react.js'])
    assert [v.id for v in found] == ['CVE-2020-11022', 'CVE-2020-8203']
    assert found[0].severity == RiskTier.MEDIUM
    assert found[0].score == 6.1
    assert found[1].severity == RiskTier.HIGH


def test_duplicate_libraries_report_one_cve():
    found = detect_vulnerabilities(['jquery.js', 'jQuery.min.js', 'jquery-ui.js'])
    assert len(found) == 1
    assert found[0].id == 'CVE-2020-11022'


def test_no_dependencies():
    assert detect_vulnerabilities([]) == []


def test_custom_table():
    table = (('moment', Vulnerability(id='CVE-2022-24785', severity=RiskTier.HIGH,
                                      description='Path traversal.', score=7.5)),)
    assert [v.id for v in detect_vulnerabilities(['moment.min.js'], table)] == ['CVE-2022-24785']
