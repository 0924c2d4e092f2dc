# Application service wiring, resolved in routes through Depends
import logging
from typing import Optional

from config.database import Database
from config.settings import get_settings
from services.github_auth import GitHubAuth, TokenCache
from services.github_service import GitHubRepository
from services.llm_service import LLMGateway
from services.scan_store import MemoryScanStore, ScanStore, create_scan_store
from services.scanner_service import ScannerService
from services.webhook_service import WebhookService

logger = logging.getLogger(__name__)


class Services:
    store: Optional[ScanStore] = None
    scanner: Optional[ScannerService] = None
    webhook: Optional[WebhookService] = None

    @classmethod
    async def startup(cls):
        db = await Database.connect_db()
        cls.build(create_scan_store(db))

    @classmethod
    def build(cls, store: ScanStore):
        settings = get_settings()
        cls.store = store
        cls.scanner = ScannerService(store, llm_gateway=LLMGateway(settings=settings))
        cls.webhook = WebhookService(
            cls.scanner,
            GitHubAuth(settings=settings, cache=TokenCache()),
            GitHubRepository(settings=settings),
            settings=settings
        )

    @classmethod
    async def shutdown(cls):
        await Database.close_db()
        cls.store = None
        cls.scanner = None
        cls.webhook = None


def _ensure_services():
    if Services.scanner is None:
        logger.warning('Services requested before startup; using in-memory store')
        Services.build(MemoryScanStore())


def get_scanner_service() -> ScannerService:
    _ensure_services()
    return Services.scanner


def get_webhook_service() -> WebhookService:
    _ensure_services()
    return Services.webhook
