# Finding schemas
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from enum import Enum

class Severity(str, Enum):
    CRITICAL = 'critical'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'

class FindingType(str, Enum):
    """Taxonomy shared by the pattern rules and the LLM prompt"""
    RCE = 'RCE'
    SQL_INJECTION = 'SQL_INJECTION'
    SECRET = 'SECRET'
    LOGIC = 'LOGIC'

class FindingSource(str, Enum):
    PATTERN = 'pattern'
    LLM = 'llm'

class Finding(BaseModel):
    model_config = ConfigDict(extra='ignore')

    line: int = Field(..., ge=1)
    severity: str  # critical, high, medium, low (anything else scores as unknown)
    type: str
    issue: Optional[str] = None
    description: Optional[str] = None
    fix_instruction: Optional[str] = None
    fix: Optional[str] = None
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
    filename: str = ''
    source: FindingSource = FindingSource.LLM

    @field_validator('severity', mode='before')
    @classmethod
    def normalize_severity(cls, value):
        if value is None:
            return 'unknown'
        return str(value).strip().lower()

class LLMAuditResult(BaseModel):
    """Canonical provider output"""
    risk_score: float = 0.0
    findings: List[Finding] = Field(default_factory=list)
    provider: str = 'none'
    model: Optional[str] = None
