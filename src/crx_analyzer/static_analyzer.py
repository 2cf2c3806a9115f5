"""
Static Source Scanner
Single pass over the bundled scripts and pages: sensitive API usage,
hardcoded secrets, third-party libraries and obfuscation signals
"""

import math
import re
from collections import Counter
from pathlib import PurePosixPath

from tqdm import tqdm

from .errors import EntryReadError
from .models import ScanSignals

SCANNED_EXTENSIONS = ('.js', '.html', '.json')

# Extension namespaces, dynamic execution, network, storage and messaging
API_PATTERNS = (
    re.compile(r'chrome\.\w+'),
    re.compile(r'browser\.\w+'),
    re.compile(r'fetch\s*\('),
    re.compile(r'XMLHttpRequest'),
    re.compile(r'eval\s*\('),
    re.compile(r'setTimeout\s*\(\s*[\'"]'),
    re.compile(r'localStorage'),
    re.compile(r'sessionStorage'),
    re.compile(r'indexedDB'),
    re.compile(r'connect\s*\('),
    re.compile(r'sendMessage\s*\('),
)

SECRET_PATTERNS = (
    # Inline credential-like assignment
    re.compile(r'(?:key|token|secret|password|auth|api_key|client_id|client_secret)\s*[:=]\s*[\'"][\w-]{10,}[\'"]',
               re.IGNORECASE),
    re.compile(r'AIza[0-9A-Za-z\-_]{35}'),  # Google API key
    re.compile(r'xox[bpgr]-[0-9]{12}-[0-9]{12}-[0-9]{12}-[a-z0-9]{32}'),  # Slack token
    re.compile(r'sk_live_[0-9a-zA-Z]{24}'),  # Stripe live key
)

# Searched within the base filename only
DEPENDENCY_PATTERNS = tuple(
    re.compile(rf'{library}[\w.-]*\.js$', re.IGNORECASE)
    for library in ('jquery', 'react', 'vue', 'angular', 'lodash', 'moment', 'bootstrap')
)

IDENTIFIER_RE = re.compile(r'[a-zA-Z_$][a-zA-Z0-9_$]*')
HEX_IDENTIFIER_RE = re.compile(r'_0x[0-9a-fA-F]+')
OBFUSCATOR_ARRAY_RE = re.compile(r'_0x[0-9a-fA-F]{4,6}\s*=\s*\[')
OBFUSCATOR_MARKER = 'javascript-obfuscator'

LONG_LINE_LENGTH = 500
LONG_LINE_FILE_RATIO = 0.1
MIN_IDENTIFIERS = 100
SUSPICIOUS_IDENTIFIER_FILE_RATIO = 0.3
HIGH_ENTROPY_THRESHOLD = 5.5
FLAGGED_FILE_RATIO = 0.2


def calculate_entropy(text):
    """Shannon entropy (bits per character) of a string"""
    if not text:
        return 0.0
    n = len(text)
    entropy = 0.0
    for count in Counter(text).values():
        p_x = count / n
        entropy -= p_x * math.log2(p_x)
    return entropy


def detect_obfuscation(code):
    """
    Per-file obfuscation metrics

    Returns:
        dict: entropy, long_line_ratio, suspicious_identifier_ratio and the
        long_lines / suspicious_identifiers / obfuscator_marker flags
    """
    lines = code.splitlines() or ['']
    long_lines = sum(1 for line in lines if len(line) > LONG_LINE_LENGTH)
    long_line_ratio = long_lines / len(lines)

    identifiers = IDENTIFIER_RE.findall(code)
    suspicious_ratio = 0.0
    if len(identifiers) > MIN_IDENTIFIERS:
        suspicious = sum(1 for ident in identifiers
                         if len(ident) == 1 or HEX_IDENTIFIER_RE.match(ident))
        suspicious_ratio = suspicious / len(identifiers)

    return {
        'entropy': calculate_entropy(code),
        'long_line_ratio': long_line_ratio,
        'long_lines': long_line_ratio > LONG_LINE_FILE_RATIO,
        'identifier_count': len(identifiers),
        'suspicious_identifier_ratio': suspicious_ratio,
        'suspicious_identifiers': suspicious_ratio > SUSPICIOUS_IDENTIFIER_FILE_RATIO,
        'obfuscator_marker': OBFUSCATOR_MARKER in code or OBFUSCATOR_ARRAY_RE.search(code) is not None,
    }


def score_obfuscation(file_metrics):
    """
    Combine per-file metrics into (is_obfuscated, obfuscation_score, average_entropy)

    A known obfuscator marker anywhere is decisive. Otherwise the three
    heuristic signals (high average entropy, many files with long lines, many
    files dominated by one-letter or _0x identifiers) are counted.
    """
    if not file_metrics:
        return False, 0, 0.0

    total = len(file_metrics)
    average_entropy = sum(m['entropy'] for m in file_metrics) / total
    marker = any(m['obfuscator_marker'] for m in file_metrics)

    signals = 0
    if average_entropy > HIGH_ENTROPY_THRESHOLD:
        signals += 1
    if sum(1 for m in file_metrics if m['long_lines']) / total > FLAGGED_FILE_RATIO:
        signals += 1
    if sum(1 for m in file_metrics if m['suspicious_identifiers']) / total > FLAGGED_FILE_RATIO:
        signals += 1

    is_obfuscated = marker or signals >= 2
    if is_obfuscated:
        score = 10
    elif signals == 1:
        score = 5
    else:
        score = 0
    return is_obfuscated, score, average_entropy


class SourceScanner:
    """Scans text entries of an ExtensionArchive once and aggregates the findings"""

    def __init__(self, api_patterns=API_PATTERNS, secret_patterns=SECRET_PATTERNS,
                 dependency_patterns=DEPENDENCY_PATTERNS):
        self.api_patterns = api_patterns
        self.secret_patterns = secret_patterns
        self.dependency_patterns = dependency_patterns

    def scan(self, archive, show_progress=False):
        """
        Scan every .js/.html/.json entry

        Args:
            archive (ExtensionArchive): Unpacked extension
            show_progress (bool): Display a tqdm progress bar

        Returns:
            ScanSignals: De-duplicated API calls, secret markers, dependencies
            and the obfuscation verdict
        """
        api_calls = {}
        secrets = {}
        dependencies = {}
        js_metrics = []
        unreadable = []

        entries = [path for path in archive.list_entries() if path.endswith(SCANNED_EXTENSIONS)]
        for path in tqdm(entries, desc="Static analysis", unit="file", disable=not show_progress):
            # Lenient decode so a stray non-UTF-8 byte never aborts the scan
            try:
                code = archive.read_text(path, errors='ignore')
            except EntryReadError:
                unreadable.append(path)
                continue

            for call in self.find_api_calls(code):
                api_calls.setdefault(call, None)

            if self.has_secret(code):
                secrets.setdefault(f"Potential secret found in {path}", None)

            dependency = self.match_dependency(path)
            if dependency:
                dependencies.setdefault(dependency, None)

            if path.endswith('.js'):
                js_metrics.append(detect_obfuscation(code))

        is_obfuscated, obfuscation_score, average_entropy = score_obfuscation(js_metrics)

        return ScanSignals(
            api_calls=list(api_calls),
            secrets=list(secrets),
            dependencies=list(dependencies),
            is_obfuscated=is_obfuscated,
            obfuscation_score=obfuscation_score,
            js_file_count=len(js_metrics),
            average_entropy=average_entropy,
            unreadable_files=unreadable,
        )

    def find_api_calls(self, code):
        found = []
        for pattern in self.api_patterns:
            for match in pattern.finditer(code):
                found.append(match.group(0).strip())
        return found

    def has_secret(self, code):
        return any(pattern.search(code) for pattern in self.secret_patterns)

    def match_dependency(self, path):
        """Return the base filename when it looks like a bundled third-party library"""
        filename = PurePosixPath(path).name
        for pattern in self.dependency_patterns:
            if pattern.search(filename):
                return filename
        return None
