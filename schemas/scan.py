# Scan schemas
from pydantic import BaseModel, Field, ConfigDict, StrictBool
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum
from schemas.finding import Finding
from utils.crypto import generate_id

class ScanStatus(str, Enum):
    COMPLETED = 'completed'
    FAILED = 'failed'

class CamelModel(BaseModel):
    """Stored and served with camelCase keys (prNumber, riskScore, ...)"""
    model_config = ConfigDict(extra='ignore', alias_generator=to_camel, populate_by_name=True)

class UserFeedback(CamelModel):
    is_real: bool
    comment: str = ''
    provided_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class Scan(CamelModel):
    id: str = Field(default_factory=generate_id)
    repo: str = 'manual'
    pr_number: Optional[int] = None
    filename: str = 'input.js'
    language: str = 'javascript'
    code: str = ''  # first 2000 characters of the scanned input
    code_hash: str = ''
    findings: List[Finding] = Field(default_factory=list)
    pattern_findings: List[Finding] = Field(default_factory=list)
    llm_findings: List[Finding] = Field(default_factory=list)
    llm_provider: str = 'none'
    llm_model: Optional[str] = None
    risk_score: float = Field(default=0.0, ge=0.0, le=10.0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    scan_duration: int = 0  # milliseconds
    status: ScanStatus = ScanStatus.COMPLETED
    error: Optional[str] = None
    user_feedback: Optional[UserFeedback] = None
    accuracy_score: Optional[int] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode='json')

class ScanRequest(CamelModel):
    code: Optional[str] = None
    filename: Optional[str] = None
    language: Optional[str] = None
    repo: Optional[str] = None
    pr_number: Optional[int] = None

class ScanStats(CamelModel):
    total_scans: int = 0
    total_vulns: int = 0
    accuracy: float = 0.0
    false_positives_prevented: int = 0
    avg_scan_duration: float = 0.0
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class FeedbackRequest(CamelModel):
    scan_id: Optional[str] = None
    is_real: Optional[StrictBool] = None
    comment: str = ''
