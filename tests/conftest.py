"""Shared test fixtures."""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from config.llm import ProviderConfig
from config.settings import Settings
from schemas.finding import Finding, FindingSource
from services.llm_service import LLMGateway, LLMProvider
from services.scan_store import MemoryScanStore
from services.scanner_service import ScannerService


class StaticProvider(LLMProvider):
    """Provider that answers with canned assistant content."""

    def __init__(self, content: str, name: str = "stub"):
        super().__init__(ProviderConfig(
            name=name,
            enabled=True,
            base_url="http://stub.invalid",
            model="stub-model",
            requires_api_key=False,
        ))
        self.content = content
        self.calls = 0

    async def complete(self, prompt: str) -> str:
        self.calls += 1
        return self.content


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="session")
def public_key_pem(rsa_key) -> str:
    return rsa_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


@pytest.fixture
def settings(private_key_pem) -> Settings:
    return Settings(
        _env_file=None,
        mongo_url="",
        github_app_id="12345",
        github_private_key=private_key_pem,
        github_webhook_secret="webhook-secret",
        github_api_url="https://api.github.test",
        groq_api_key="",
        openai_api_key="",
        llm_groq_enabled=False,
        llm_ollama_enabled=False,
        llm_openai_enabled=False,
        webhook_reject_status=200,
        scan_concurrency=2,
    )


@pytest.fixture
def store() -> MemoryScanStore:
    return MemoryScanStore()


@pytest.fixture
def offline_gateway() -> LLMGateway:
    """Every provider unavailable."""
    return LLMGateway(providers=[])


@pytest.fixture
def make_gateway():
    def _make(content: str) -> LLMGateway:
        return LLMGateway(providers=[StaticProvider(content)])
    return _make


@pytest.fixture
def scanner(store, offline_gateway) -> ScannerService:
    return ScannerService(store, llm_gateway=offline_gateway)


def make_finding(
    line: int,
    type_: str,
    severity: str = "high",
    source: FindingSource = FindingSource.LLM,
    **extra,
) -> Finding:
    return Finding(line=line, type=type_, severity=severity, source=source, **extra)


@pytest.fixture
def finding():
    return make_finding
