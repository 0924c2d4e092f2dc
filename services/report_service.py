# PR report comment formatting
from typing import Sequence

from schemas.scan import Scan

SEVERITY_ICONS = {
    'critical': '🔴',
    'high': '🟠',
    'medium': '🟡',
    'low': '🔵',
}


def format_pr_comment(scans: Sequence[Scan]) -> str:
    """Consolidated Markdown report for every scanned file in a PR"""
    findings = [f for scan in scans for f in scan.findings]
    counts = {severity: 0 for severity in SEVERITY_ICONS}
    for finding in findings:
        if finding.severity in counts:
            counts[finding.severity] += 1

    body = "## 🛡️ ZeroFalse Security Audit\n\n"
    body += "**Scan Status:** COMPLETED\n"
    body += f"**Files Scanned:** {len(scans)}\n"
    body += f"**Total Issues Found:** {len(findings)}\n\n"

    if not findings:
        body += "✅ **No vulnerabilities detected.**\n\n"
        body += "_ZeroFalse - AI Security for AI-Generated Code_"
        return body

    # Only list severities that actually occur
    body += "### 📊 Risk Profile\n"
    for severity, icon in SEVERITY_ICONS.items():
        if counts[severity]:
            body += f"- {icon} **{severity.capitalize()}:** {counts[severity]}\n"
    body += "\n---\n\n"

    for scan in scans:
        if not scan.findings:
            continue

        body += f"### `{scan.filename}` (risk {scan.risk_score}/10)\n\n"
        for finding in scan.findings:
            icon = SEVERITY_ICONS.get(finding.severity, '⚪')
            body += f"#### {icon} {finding.severity.upper()}: {finding.type} (line {finding.line})\n"

            reason = finding.issue or finding.description
            if reason:
                body += f"**Why it's dangerous:** {reason}\n\n"

            fix = finding.fix_instruction or finding.fix
            if fix:
                body += f"**Recommended fix:** {fix}\n\n"

        body += "---\n\n"

    body += "_ZeroFalse - AI Security for AI-Generated Code_"
    return body
