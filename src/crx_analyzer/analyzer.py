"""
Main Analyzer
Runs the inspection pipeline on a package and provides the command line interface
"""

import argparse
import re
import sys
from collections import Counter
from pathlib import Path

from .config import load_config
from .downloader import DownloadError, ExtensionDownloader, validate_extension_id
from .errors import AnalysisError
from .manifest_resolver import ManifestResolver
from .models import AnalysisResult, RiskTier
from .permission_analyzer import analyze_permissions
from .risk_scorer import calculate_detailed_risk
from .static_analyzer import SourceScanner
from .store_metadata import StoreMetadata, calculate_reputation_score
from .unpacker import ExtensionUnpacker
from .utils import calculate_sha256, extract_extension_id, format_bytes, get_timestamp, save_json
from .vulnerability_checker import detect_vulnerabilities

EXIT_CODES = {
    RiskTier.CRITICAL: 3,
    RiskTier.HIGH: 2,
    RiskTier.MEDIUM: 1,
    RiskTier.LOW: 0,
}
EXIT_ANALYSIS_FAILED = 4


class ExtensionAnalyzer:
    """Pipeline orchestrator: unpack, resolve manifest, classify, scan, score"""

    def __init__(self, verbose=True, show_progress=False):
        self.verbose = verbose
        self.show_progress = show_progress
        self.unpacker = ExtensionUnpacker(verbose=verbose)
        self.manifest_resolver = ManifestResolver()
        self.scanner = SourceScanner()

    def analyze(self, package_bytes, reputation=None):
        """
        Analyze one extension package

        Args:
            package_bytes (bytes): CRX or ZIP package
            reputation (ReputationData): Optional store metadata

        Returns:
            AnalysisResult: Complete, immutable assessment

        Raises:
            AnalysisError: InvalidArchive, ManifestNotFound, ManifestParseError
            or EntryReadError (manifest unreadable); no partial result is produced
        """
        with self.unpacker.unpack(package_bytes) as archive:
            manifest = self.manifest_resolver.resolve(archive)
            self._log(f"[+] Extension: {manifest.name}")
            self._log(f"[+] Version: {manifest.version}")
            self._log(f"[+] Manifest version: {manifest.manifest_version}")
            if manifest.icon:
                self._log("[+] Icon extracted")

            permissions = analyze_permissions(manifest.permissions, manifest.host_permissions)
            self._log(f"[+] Permissions: {len(permissions)} found")
            for finding in permissions:
                if finding.risk >= RiskTier.HIGH:
                    self._log(f"  [FLAG] {finding.risk.value.upper()}: {finding.permission}")

            signals = self.scanner.scan(archive, show_progress=self.show_progress)

        self._log(f"[+] Scanned {signals.js_file_count} JavaScript files "
                  f"(average entropy {signals.average_entropy:.2f})")
        for path in signals.unreadable_files:
            self._log(f"[!] Could not read {path}, skipped")
        if signals.secrets:
            self._log(f"[!] {len(signals.secrets)} file(s) with potential hardcoded secrets")
        if signals.is_obfuscated:
            self._log("[!] Code appears to be obfuscated")

        vulnerabilities = detect_vulnerabilities(signals.dependencies)
        for vulnerability in vulnerabilities:
            self._log(f"[!] {vulnerability.id} ({vulnerability.severity.value}): {vulnerability.description}")

        risk = calculate_detailed_risk(permissions, vulnerabilities, manifest.manifest_version,
                                       signals.obfuscation_score)
        self._log(f"[+] Risk Score: {risk.score}/100 ({risk.level.value})")

        reputation_score = None
        if reputation is not None:
            reputation_score = calculate_reputation_score(reputation)
            self._log(f"[+] Reputation Score: {reputation_score}/100")

        return AnalysisResult(
            name=manifest.name,
            version=manifest.version,
            icon=manifest.icon,
            manifest_version=manifest.manifest_version,
            permissions=permissions,
            api_calls=signals.api_calls,
            secrets=signals.secrets,
            dependencies=signals.dependencies,
            vulnerabilities=vulnerabilities,
            risk_score=risk.score,
            risk_level=risk.level,
            risk_equation=risk.equation,
            is_obfuscated=signals.is_obfuscated,
            obfuscation_score=signals.obfuscation_score,
            reputation=reputation,
            reputation_score=reputation_score,
        )

    def save_report(self, result, output_dir='reports', package_bytes=None):
        """Save analysis report to JSON"""
        report = result.model_dump(mode='json')
        report['generated_at'] = get_timestamp()
        if package_bytes is not None:
            report['sha256'] = calculate_sha256(package_bytes)

        safe_name = re.sub(r'[^A-Za-z0-9._-]+', '_', result.name).strip('_') or 'extension'
        report_path = Path(output_dir) / f"{safe_name}_analysis.json"
        save_json(report, report_path)

        self._log(f"[+] Report saved: {report_path}")
        return report_path

    def _log(self, message):
        if self.verbose:
            print(message)


def analyze(package_bytes, reputation=None):
    """Analyze a CRX/ZIP package without console output"""
    return ExtensionAnalyzer(verbose=False).analyze(package_bytes, reputation)


def print_analysis_summary(result, package_bytes=None, file_list=None):
    """Print analysis summary"""
    print("\n" + "=" * 80)
    print("ANALYSIS COMPLETE")
    print("=" * 80)
    print(f"\nExtension: {result.name}")
    print(f"Version: {result.version} (Manifest V{result.manifest_version})")
    if package_bytes is not None:
        print(f"Package: {format_bytes(len(package_bytes))}, sha256 {calculate_sha256(package_bytes)}")
    print(f"Risk Score: {result.risk_score}/100 ({result.risk_level.value})")
    print(f"   {result.risk_equation}")
    if result.reputation_score is not None:
        print(f"Reputation Score: {result.reputation_score}/100")

    if file_list:
        extensions = Counter(f['extension'] or 'no_extension' for f in file_list)
        print("\nFile types:")
        for ext, count in sorted(extensions.items()):
            print(f"    {ext}: {count}")

    print("\nPermissions:")
    for finding in result.permissions:
        print(f"   [{finding.risk.value:<8}] {finding.permission} - {finding.description}")

    print("\nStatistics:")
    print(f"   - API calls: {len(result.api_calls)}")
    print(f"   - Potential secrets: {len(result.secrets)}")
    print(f"   - Third-party libraries: {', '.join(result.dependencies) or 'none'}")
    print(f"   - Known vulnerabilities: {', '.join(v.id for v in result.vulnerabilities) or 'none'}")
    print(f"   - Obfuscated: {'yes' if result.is_obfuscated else 'no'} (+{result.obfuscation_score})")


def print_verdict(result):
    """Print final verdict"""
    print(f"\n{'=' * 80}")
    if result.risk_level == RiskTier.CRITICAL:
        print("VERDICT: CRITICAL RISK - DO NOT INSTALL")
    elif result.risk_level == RiskTier.HIGH:
        print("VERDICT: HIGH RISK - NOT RECOMMENDED")
    elif result.risk_level == RiskTier.MEDIUM:
        print("VERDICT: MEDIUM RISK - MANUAL REVIEW REQUIRED")
    else:
        print("VERDICT: LOW RISK - MONITOR FOR UPDATES")
    print(f"{'=' * 80}\n")


def parse_cli_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Static risk assessment for Chrome/Edge extension packages',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a local package
  crx-analyzer downloads/extension.crx

  # Download and analyze from the Chrome Web Store
  crx-analyzer cjpalhdlnbpafiamejdnhcphjbkeiagm

  # Analyze from a store URL
  crx-analyzer https://microsoftedge.microsoft.com/addons/detail/ublock-origin/odlbpnoocpeebfbbnocajebccdbogpbe
        """
    )
    parser.add_argument('target', help='Path to a .crx/.zip file, an extension ID, or a store URL')
    parser.add_argument('--store', choices=['chrome', 'edge'], default='chrome',
                        help='Store to download from when TARGET is an ID (default: chrome)')
    parser.add_argument('--output-dir', default='reports', help='Output directory for reports (default: reports/)')
    parser.add_argument('--config', default='config.json', help='Configuration file (default: config.json)')
    parser.add_argument('--no-reputation', action='store_true', help='Skip the store reputation lookup')
    parser.add_argument('--save-package', action='store_true', help='Keep the downloaded package in download_dir')
    parser.add_argument('--quiet', action='store_true', help='Only print the summary')
    return parser.parse_args(argv)


def resolve_target(target, store):
    """Return (local_path, extension_id, store) for a CLI target"""
    path = Path(target)
    if path.exists():
        return path, None, store
    from_url = extract_extension_id(target)
    if from_url:
        return None, from_url[0], from_url[1]
    extension_id = target.strip().lower()
    if validate_extension_id(extension_id):
        return None, extension_id, store
    return None, None, store


def main(argv=None):
    """CLI entry point"""
    args = parse_cli_args(argv)
    config = load_config(args.config)

    local_path, extension_id, store = resolve_target(args.target, args.store)
    if local_path is None and extension_id is None:
        print(f"[[X]] Not a file, extension ID or store URL: {args.target}")
        return EXIT_ANALYSIS_FAILED

    reputation = None
    if local_path is not None:
        package_bytes = local_path.read_bytes()
        print(f"[+] Loaded {local_path} ({format_bytes(len(package_bytes))})")
    else:
        try:
            package_bytes = ExtensionDownloader(config).download_extension(
                extension_id, store, save=args.save_package, show_progress=not args.quiet)
        except DownloadError as e:
            print(f"[[X]] {e}")
            return EXIT_ANALYSIS_FAILED
        if not args.no_reputation:
            reputation = StoreMetadata(config).fetch_reputation(extension_id, store)

    analyzer = ExtensionAnalyzer(verbose=not args.quiet, show_progress=not args.quiet)
    try:
        result = analyzer.analyze(package_bytes, reputation)
        with ExtensionUnpacker(verbose=False).unpack(package_bytes) as archive:
            file_list = archive.get_file_list()
    except AnalysisError as e:
        print(f"[[X]] Analysis failed: {e}")
        return EXIT_ANALYSIS_FAILED

    print_analysis_summary(result, package_bytes, file_list)
    analyzer.save_report(result, args.output_dir, package_bytes)
    print_verdict(result)

    return EXIT_CODES[result.risk_level]


if __name__ == "__main__":
    sys.exit(main())
