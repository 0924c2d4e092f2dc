# Scanner service - orchestrates pattern scan, LLM audit, merge and persistence
import logging
import os
import time
from typing import List, Optional, Sequence

from schemas.finding import Finding, LLMAuditResult
from schemas.scan import Scan, ScanStats, ScanStatus, UserFeedback
from services.finding_merger import FindingMerger
from services.llm_service import LLMGateway
from services.pattern_engine import PatternEngine
from services.scan_store import ScanStore
from utils.crypto import generate_id, hash_data
from utils.errors import EmptyInputError

logger = logging.getLogger(__name__)

STORED_CODE_CHARS = 2000

LANGUAGE_EXTENSIONS = {
    '.js': 'javascript',
    '.jsx': 'javascript',
    '.mjs': 'javascript',
    '.cjs': 'javascript',
    '.ts': 'typescript',
    '.tsx': 'typescript',
    '.py': 'python',
    '.java': 'java',
    '.go': 'go',
    '.rb': 'ruby',
    '.php': 'php',
    '.cpp': 'cpp',
    '.cc': 'cpp',
    '.c': 'cpp',
    '.h': 'cpp',
    '.cs': 'csharp',
    '.yml': 'yaml',
    '.yaml': 'yaml',
    '.json': 'json',
}

# Generated files that carry recognized extensions
GENERATED_FILENAMES = frozenset({
    'package-lock.json',
    'npm-shrinkwrap.json',
    'pnpm-lock.yaml',
})
GENERATED_SUFFIXES = ('.min.js', '.bundle.js')


def detect_language(filename: str) -> Optional[str]:
    """Language for a recognized source extension, None otherwise"""
    _, ext = os.path.splitext(filename or '')
    return LANGUAGE_EXTENSIONS.get(ext.lower())


def is_scannable(filename: str) -> bool:
    """Recognized source file that is not a lockfile or minified bundle"""
    name = os.path.basename(filename or '').lower()
    if name in GENERATED_FILENAMES or name.endswith(GENERATED_SUFFIXES):
        return False
    return detect_language(filename) is not None


def with_filename(findings: Sequence[Finding], filename: str) -> List[Finding]:
    return [f if f.filename else f.model_copy(update={'filename': filename}) for f in findings]


class ScannerService:
    def __init__(
        self,
        store: ScanStore,
        pattern_engine: Optional[PatternEngine] = None,
        llm_gateway: Optional[LLMGateway] = None,
        merger: Optional[FindingMerger] = None
    ):
        self.store = store
        self.pattern_engine = pattern_engine or PatternEngine()
        self.llm_gateway = llm_gateway or LLMGateway()
        self.merger = merger or FindingMerger()

    async def scan_code(
        self,
        code: str,
        filename: str = 'input.js',
        repo: str = 'manual',
        pr_number: Optional[int] = None,
        language: Optional[str] = None
    ) -> Scan:
        """Scan one file or snippet. Always returns a Scan, never raises."""
        scan_id = generate_id()
        started = time.monotonic()
        language = (language or detect_language(filename) or 'javascript').lower()

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        try:
            if not code:
                raise EmptyInputError('Code is required')

            logger.info(f'Starting scan {scan_id} for {repo}:{filename} ({language})')

            pattern_findings = with_filename(self.pattern_engine.scan(code, language), filename)

            try:
                llm_result = await self.llm_gateway.analyze(code, filename, language)
            except Exception as e:
                logger.warning(f'LLM scan failed, continuing with pattern findings: {e}')
                llm_result = LLMAuditResult()
            llm_findings = with_filename(llm_result.findings, filename)

            findings = self.merger.merge(pattern_findings, llm_findings)
            risk_score = self.merger.score(findings, llm_result.risk_score)

            scan = Scan(
                id=scan_id,
                repo=repo,
                pr_number=pr_number,
                filename=filename,
                language=language,
                code=code[:STORED_CODE_CHARS],
                code_hash=hash_data(code),
                findings=findings,
                pattern_findings=pattern_findings,
                llm_findings=llm_findings,
                llm_provider=llm_result.provider,
                llm_model=llm_result.model,
                risk_score=risk_score,
                scan_duration=elapsed_ms(),
                status=ScanStatus.COMPLETED
            )

        except EmptyInputError as e:
            logger.warning(f'Scan {scan_id} rejected: {e}')
            return self._failed_scan(scan_id, filename, repo, pr_number, language, str(e), elapsed_ms())
        except Exception as e:
            logger.exception(f'Scan {scan_id} failed: {e}')
            return self._failed_scan(scan_id, filename, repo, pr_number, language, str(e), elapsed_ms())

        try:
            await self.store.insert_scan(scan)
        except Exception as e:
            logger.error(f'Failed to persist scan {scan_id}: {e}')
            return scan.model_copy(update={'status': ScanStatus.FAILED, 'error': f'Persistence failed: {e}'})

        logger.info(f'Scan {scan_id} complete: {len(findings)} findings, risk {risk_score}, '
                    f'provider {llm_result.provider}, {scan.scan_duration}ms')
        return scan

    def _failed_scan(self, scan_id, filename, repo, pr_number, language, error, duration) -> Scan:
        return Scan(
            id=scan_id,
            repo=repo,
            pr_number=pr_number,
            filename=filename,
            language=language,
            findings=[],
            risk_score=0.0,
            scan_duration=duration,
            status=ScanStatus.FAILED,
            error=error
        )

    async def list_scans(self, limit: int = 50) -> List[Scan]:
        return await self.store.list_scans(limit)

    async def get_scan(self, scan_id: str) -> Optional[Scan]:
        return await self.store.find_scan(scan_id)

    async def get_stats(self) -> ScanStats:
        return await self.store.get_stats()

    async def record_feedback(self, scan_id: str, is_real: bool, comment: str = '') -> Optional[Scan]:
        feedback = UserFeedback(is_real=is_real, comment=comment or '')
        scan = await self.store.update_feedback(scan_id, feedback, 100 if is_real else 0)
        if scan:
            logger.info(f'Feedback recorded for scan {scan_id}: is_real={is_real}')
        return scan
