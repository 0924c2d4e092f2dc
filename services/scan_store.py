# Scan persistence - MongoDB when configured, process memory otherwise
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from schemas.scan import Scan, ScanStats, ScanStatus, UserFeedback

logger = logging.getLogger(__name__)


def compute_stats(scans: Iterable[Scan]) -> ScanStats:
    """Global statistics over completed scans"""
    completed = [s for s in scans if s.status == ScanStatus.COMPLETED]
    with_feedback = [s for s in completed if s.user_feedback]
    correct = [
        s for s in with_feedback
        if s.user_feedback.is_real == (len(s.findings) > 0)
    ]

    return ScanStats(
        total_scans=len(completed),
        total_vulns=sum(len(s.findings) for s in completed),
        accuracy=round(len(correct) / len(with_feedback) * 100, 1) if with_feedback else 0.0,
        false_positives_prevented=len([s for s in with_feedback if not s.user_feedback.is_real]),
        avg_scan_duration=round(sum(s.scan_duration for s in completed) / len(completed), 1) if completed else 0.0
    )


class ScanStore(ABC):
    """Append-only scan storage; feedback is the only secondary write"""

    @abstractmethod
    async def insert_scan(self, scan: Scan) -> None:
        pass

    @abstractmethod
    async def list_scans(self, limit: int = 50) -> List[Scan]:
        """Most recent first"""
        pass

    @abstractmethod
    async def find_scan(self, scan_id: str) -> Optional[Scan]:
        pass

    @abstractmethod
    async def update_feedback(self, scan_id: str, feedback: UserFeedback, accuracy_score: int) -> Optional[Scan]:
        pass

    @abstractmethod
    async def get_stats(self) -> ScanStats:
        pass


class MemoryScanStore(ScanStore):
    def __init__(self):
        self._scans: List[Scan] = []
        self._lock = asyncio.Lock()

    async def insert_scan(self, scan: Scan) -> None:
        async with self._lock:
            self._scans.append(scan)

    async def list_scans(self, limit: int = 50) -> List[Scan]:
        async with self._lock:
            ordered = sorted(self._scans, key=lambda s: s.timestamp, reverse=True)
        return ordered[:limit]

    async def find_scan(self, scan_id: str) -> Optional[Scan]:
        async with self._lock:
            return next((s for s in self._scans if s.id == scan_id), None)

    async def update_feedback(self, scan_id: str, feedback: UserFeedback, accuracy_score: int) -> Optional[Scan]:
        async with self._lock:
            for index, scan in enumerate(self._scans):
                if scan.id == scan_id:
                    updated = scan.model_copy(update={
                        'user_feedback': feedback,
                        'accuracy_score': accuracy_score
                    })
                    self._scans[index] = updated
                    return updated
        return None

    async def get_stats(self) -> ScanStats:
        async with self._lock:
            scans = list(self._scans)
        return compute_stats(scans)

    def __len__(self) -> int:
        return len(self._scans)


class MongoScanStore(ScanStore):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.scans

    async def insert_scan(self, scan: Scan) -> None:
        await self.collection.insert_one(scan.to_document())

    async def list_scans(self, limit: int = 50) -> List[Scan]:
        docs = await self.collection.find({}, {'_id': 0}).sort('timestamp', -1).limit(limit).to_list(limit)
        return [Scan.model_validate(doc) for doc in docs]

    async def find_scan(self, scan_id: str) -> Optional[Scan]:
        doc = await self.collection.find_one({'id': scan_id}, {'_id': 0})
        return Scan.model_validate(doc) if doc else None

    async def update_feedback(self, scan_id: str, feedback: UserFeedback, accuracy_score: int) -> Optional[Scan]:
        result = await self.collection.update_one(
            {'id': scan_id},
            {'$set': {
                'userFeedback': feedback.model_dump(by_alias=True, mode='json'),
                'accuracyScore': accuracy_score
            }}
        )
        if result.matched_count == 0:
            return None
        return await self.find_scan(scan_id)

    async def get_stats(self) -> ScanStats:
        docs = await self.collection.find(
            {'status': ScanStatus.COMPLETED.value},
            {'_id': 0, 'code': 0, 'patternFindings': 0, 'llmFindings': 0}
        ).to_list(None)
        return compute_stats(Scan.model_validate(doc) for doc in docs)


def create_scan_store(db: Optional[AsyncIOMotorDatabase]) -> ScanStore:
    if db is not None:
        logger.info('Scan store: MongoDB')
        return MongoScanStore(db)
    logger.info('Scan store: in-memory')
    return MemoryScanStore()
