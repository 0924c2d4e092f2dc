# Finding merger - reconciles pattern and LLM findings into one report
#
# LLM findings are the base set (they carry the reasoning); pattern findings
# are the deterministic safety net and are only added when nothing already
# covers them. "Covers" is a heuristic: same coarse bucket within a few lines.
import logging
from typing import Dict, List, Sequence, Set, Tuple

from schemas.finding import Finding

logger = logging.getLogger(__name__)

LINE_WINDOW = 2

SEVERITY_WEIGHTS: Dict[str, float] = {
    'critical': 2.5,
    'high': 1.5,
    'medium': 0.7,
    'low': 0.2,
}
UNKNOWN_SEVERITY_WEIGHT = 0.5

MAX_RISK_SCORE = 10.0


def normalize_type(finding_type: str) -> str:
    """Collapse a finding type into the bucket used for duplicate detection

    Order matters: "SQL_INJECTION" contains "injection" and lands in code_exec,
    same as every other injection-flavoured label.
    """
    t = (finding_type or '').lower()
    if any(k in t for k in ('execution', 'eval', 'rce', 'injection')):
        return 'code_exec'
    if 'sql' in t:
        return 'sql_inj'
    if any(k in t for k in ('secret', 'password', 'key')):
        return 'credential'
    return t


def is_duplicate(pattern_finding: Finding, llm_finding: Finding) -> bool:
    return (
        abs(llm_finding.line - pattern_finding.line) <= LINE_WINDOW
        and normalize_type(llm_finding.type) == normalize_type(pattern_finding.type)
    )


def merge_findings(pattern_findings: Sequence[Finding], llm_findings: Sequence[Finding]) -> List[Finding]:
    """Deduplicate both engines' output, sorted by line (LLM first on ties)"""
    merged: List[Finding] = []
    taken: Set[Tuple[int, str]] = set()

    for af in llm_findings:
        key = (af.line, normalize_type(af.type))
        if key in taken:
            continue
        taken.add(key)
        merged.append(af)

    base = list(merged)
    added = 0
    for pf in pattern_findings:
        if any(is_duplicate(pf, af) for af in base):
            continue

        key = (pf.line, normalize_type(pf.type))
        if key in taken:
            continue
        taken.add(key)

        merged.append(pf.model_copy(update={
            'issue': pf.issue or pf.description,
            'fix_instruction': pf.fix_instruction or pf.fix,
        }))
        added += 1

    merged.sort(key=lambda f: f.line)
    logger.debug(f'Merged {len(llm_findings)} LLM + {len(pattern_findings)} pattern findings '
                 f'-> {len(merged)} ({added} from patterns)')
    return merged


def base_score(findings: Sequence[Finding]) -> float:
    return sum(SEVERITY_WEIGHTS.get(f.severity, UNKNOWN_SEVERITY_WEIGHT) for f in findings)


def compute_risk_score(findings: Sequence[Finding], llm_risk_score: float = 0.0) -> float:
    """max(evidence-based score, LLM score), clamped to [0, 10], one decimal

    No findings means no evidence, so the score is 0.0 whatever the LLM said.
    """
    if not findings:
        return 0.0

    try:
        llm_risk_score = float(llm_risk_score or 0.0)
    except (TypeError, ValueError):
        llm_risk_score = 0.0

    score = max(base_score(findings), llm_risk_score)
    score = min(max(score, 0.0), MAX_RISK_SCORE)
    return round(score, 1)


class FindingMerger:
    def merge(self, pattern_findings: Sequence[Finding], llm_findings: Sequence[Finding]) -> List[Finding]:
        return merge_findings(pattern_findings, llm_findings)

    def score(self, findings: Sequence[Finding], llm_risk_score: float = 0.0) -> float:
        return compute_risk_score(findings, llm_risk_score)
