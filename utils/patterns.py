# Static security pattern table
#
# Rule names are the shared taxonomy (RCE, SQL_INJECTION, SECRET, LOGIC) the
# LLM prompt is also held to, which is what lets the two engines be merged.
import re
from dataclasses import dataclass
from typing import FrozenSet, Tuple

from schemas.finding import FindingType, Severity

SOURCE_LANGUAGES = frozenset({'javascript', 'typescript', 'python'})


@dataclass(frozen=True)
class PatternRule:
    name: str
    title: str
    severity: Severity
    languages: FrozenSet[str]
    regexes: Tuple[re.Pattern, ...]
    fix_hint: str


SECURITY_PATTERNS: Tuple[PatternRule, ...] = (
    PatternRule(
        name=FindingType.RCE.value,
        title='Remote Code Execution (RCE)',
        severity=Severity.CRITICAL,
        languages=SOURCE_LANGUAGES,
        regexes=(
            re.compile(r'\beval\s*\('),
            re.compile(r'\bexec(Sync)?\s*\('),
            re.compile(r'\b(new\s+)?Function\s*\('),
            re.compile(r'\bset(Timeout|Interval)\s*\(\s*[\'"`]'),
            re.compile(r'\bos\.(system|popen)\s*\('),
            re.compile(r'\bsubprocess\.\w+\(.*shell\s*=\s*True'),
        ),
        fix_hint='Never evaluate or execute strings built from input; use a fixed command list or a safe parser.',
    ),
    PatternRule(
        name=FindingType.SECRET.value,
        title='Hardcoded Secret',
        severity=Severity.CRITICAL,
        languages=SOURCE_LANGUAGES | {'yaml', 'json'},
        regexes=(
            re.compile(
                r'(password|passwd|secret|token|api_?key|access_key|private_key|client_secret)'
                r'[\'"]?\s*[:=]\s*[\'"`][^\'"`]{4,}[\'"`]',
                re.IGNORECASE,
            ),
            re.compile(r'[\'"`](ghp_|gho_|sk_live_|sk-|xox[bp]-|key-)[a-zA-Z0-9_\-]{20,}'),
            re.compile(r'\bAKIA[0-9A-Z]{16}\b'),
        ),
        fix_hint='Move the credential to an environment variable or secret manager and rotate it.',
    ),
    PatternRule(
        name=FindingType.SQL_INJECTION.value,
        title='SQL Injection Risk',
        severity=Severity.HIGH,
        languages=SOURCE_LANGUAGES,
        regexes=(
            re.compile(r'\b(SELECT|INSERT|UPDATE|DELETE|DROP)\b.*[\'"`]\s*\+', re.IGNORECASE),
            re.compile(r'\b(SELECT|INSERT|UPDATE|DELETE|DROP)\b.*\+\s*[\'"`]', re.IGNORECASE),
            re.compile(r'\b(SELECT|INSERT|UPDATE|DELETE|DROP)\b.*?\$\{.*?\}', re.IGNORECASE),
            re.compile(r'\b(SELECT|INSERT|UPDATE|DELETE|DROP)\b.*[\'"]\s*%\s*\(?\w', re.IGNORECASE),
            re.compile(r'\b(SELECT|INSERT|UPDATE|DELETE|DROP)\b.*[\'"]\.format\(', re.IGNORECASE),
            re.compile(r'\bf[\'"].*\b(SELECT|INSERT|UPDATE|DELETE|DROP)\b.*\{', re.IGNORECASE),
        ),
        fix_hint='Use parameterized queries or prepared statements instead of string building.',
    ),
    PatternRule(
        name=FindingType.LOGIC.value,
        title='Weak Crypto or Access Control',
        severity=Severity.MEDIUM,
        languages=SOURCE_LANGUAGES,
        regexes=(
            re.compile(r'createHash\s*\(\s*[\'"`](md5|sha1)[\'"`]', re.IGNORECASE),
            re.compile(r'\bhashlib\.(md5|sha1)\s*\('),
            re.compile(r'createCipher(iv)?\s*\(\s*[\'"`](des|rc4)', re.IGNORECASE),
            re.compile(r'rejectUnauthorized\s*:\s*false'),
            re.compile(r'NODE_TLS_REJECT_UNAUTHORIZED\s*=\s*[\'"`]?0'),
            re.compile(r'\bverify\s*=\s*False\b'),
            re.compile(r'(token|secret|session|nonce)\w*\s*[:=].*Math\.random\s*\(', re.IGNORECASE),
        ),
        fix_hint='Use a modern algorithm (SHA-256+, AES-GCM), a CSPRNG, and keep TLS verification enabled.',
    ),
)
