# Pattern engine - fast, deterministic line-oriented regex scan
import logging
from typing import Iterable, List, Optional

from schemas.finding import Finding, FindingSource
from utils.patterns import SECURITY_PATTERNS, PatternRule

logger = logging.getLogger(__name__)

PATTERN_CONFIDENCE = 85


class PatternEngine:
    """Evaluates the static rule table over source text. Never raises."""

    def __init__(self, rules: Optional[Iterable[PatternRule]] = None):
        self.rules = tuple(rules) if rules is not None else SECURITY_PATTERNS

    def scan(self, code: str, language: str) -> List[Finding]:
        if not code:
            return []

        language = (language or '').lower()
        lines = code.split('\n')
        findings = []

        for rule in self.rules:
            if language not in rule.languages:
                continue

            for index, line_text in enumerate(lines, start=1):
                # First matching regex wins; a rule fires at most once per line
                if any(regex.search(line_text) for regex in rule.regexes):
                    findings.append(Finding(
                        line=index,
                        severity=rule.severity.value,
                        type=rule.name,
                        description=f'Found potential {rule.title} vulnerability.',
                        fix=rule.fix_hint,
                        confidence=PATTERN_CONFIDENCE,
                        source=FindingSource.PATTERN
                    ))

        findings.sort(key=lambda f: f.line)
        logger.debug(f'Pattern scan ({language}): {len(findings)} findings')
        return findings
