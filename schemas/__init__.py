from schemas.finding import Finding, FindingSource, FindingType, LLMAuditResult, Severity
from schemas.scan import Scan, ScanStatus, ScanRequest, ScanStats, FeedbackRequest, UserFeedback
from schemas.webhook import PullRequestEvent, PullRequestFile

__all__ = [
    'Finding', 'FindingSource', 'FindingType', 'LLMAuditResult', 'Severity',
    'Scan', 'ScanStatus', 'ScanRequest', 'ScanStats', 'FeedbackRequest', 'UserFeedback',
    'PullRequestEvent', 'PullRequestFile'
]
