# LLM audit service - prompt building, provider fallback chain, response normalization
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from config.llm import ProviderConfig, get_provider_configs
from config.settings import Settings, get_settings
from schemas.finding import Finding, FindingSource, FindingType, LLMAuditResult
from utils.errors import ParseError, ProviderError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    'You are a technical security JSON generator. No prose. '
    'No conversational text. Use the provided taxonomy.'
)


def build_prompt(code: str, filename: str, language: str) -> str:
    """Audit prompt pinned to the RCE / SQL_INJECTION / SECRET / LOGIC taxonomy"""
    taxonomy = ' | '.join(f'"{t.value}"' for t in FindingType)
    return f'''ACT AS A SENIOR SECURITY AUDITOR.
Audit this {language} file ({filename}) for critical vulnerabilities.

STRICT TAXONOMY (You must use these exact strings for "type"):
1. "RCE": For eval, exec, code injection, or command execution.
2. "SQL_INJECTION": For unsanitized database queries.
3. "SECRET": For hardcoded passwords, tokens, or keys.
4. "LOGIC": For weak crypto or broken access control.

RESPONSE REQUIREMENTS:
- Return ONLY valid JSON.
- Global "riskScore" (0.0 - 10.0).
- "findings": An array of objects, empty if the code is safe.
- "line" is the 1-based line number in the code below.
- Keep "issue" and "fix_instruction" to exactly one technical sentence.

JSON STRUCTURE:
{{
  "riskScore": number,
  "findings": [
    {{
      "line": number,
      "severity": "critical" | "high" | "medium" | "low",
      "type": {taxonomy},
      "issue": "string",
      "fix_instruction": "string"
    }}
  ]
}}

CODE TO AUDIT:
```{language}
{code}
```'''


def coerce_confidence(value) -> Optional[int]:
    """Percentage in 0..100; fractions in 0..1 are scaled, anything else is None"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if 0 <= number <= 1 and not number.is_integer():
        number *= 100
    if not 0 <= number <= 100:
        return None
    return int(round(number))


def parse_audit_content(content: str) -> LLMAuditResult:
    """Parse assistant content into the canonical result

    Accepts the documented object, a bare findings array, or a single finding
    object in place of the array. Individual malformed findings are dropped;
    content that is not JSON at all raises ParseError.
    """
    try:
        data = json.loads(content)
    except (TypeError, json.JSONDecodeError) as e:
        raise ParseError(f'AI returned invalid JSON: {e}')

    if isinstance(data, list):
        data = {'findings': data}
    if not isinstance(data, dict):
        raise ParseError(f'Unexpected JSON root: {type(data).__name__}')

    raw_findings = data.get('findings', [])
    if isinstance(raw_findings, dict):
        raw_findings = [raw_findings]
    if not isinstance(raw_findings, list):
        raw_findings = []

    findings: List[Finding] = []
    for raw in raw_findings:
        if not isinstance(raw, dict):
            continue
        try:
            findings.append(Finding.model_validate({
                **raw,
                'confidence': coerce_confidence(raw.get('confidence')),
                'source': FindingSource.LLM
            }))
        except ValidationError as e:
            logger.warning(f'Dropping malformed LLM finding {raw!r}: {e.error_count()} errors')

    raw_score = data.get('riskScore', data.get('risk_score', 0.0))
    try:
        risk_score = float(raw_score or 0.0)
    except (TypeError, ValueError):
        risk_score = 0.0

    return LLMAuditResult(risk_score=risk_score, findings=findings)


class LLMProvider(ABC):
    """One entry of the fallback chain"""

    def __init__(self, config: ProviderConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.transport = transport

    @property
    def name(self) -> str:
        return self.config.name

    async def is_available(self) -> bool:
        if not self.config.enabled:
            return False
        if self.config.requires_api_key and not self.config.api_key:
            return False
        return True

    async def analyze(self, prompt: str) -> LLMAuditResult:
        """Run the prompt; any failure surfaces as ProviderError"""
        try:
            content = await asyncio.wait_for(self.complete(prompt), timeout=self.config.timeout)
            result = parse_audit_content(content)
        except asyncio.TimeoutError:
            raise ProviderError(self.name, f'timed out after {self.config.timeout}s')
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f'HTTP error: {e}')
        except ParseError as e:
            raise ProviderError(self.name, str(e))

        result.provider = self.name
        result.model = self.config.model
        return result

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the raw assistant content for the prompt"""
        pass


class OpenAICompatibleProvider(LLMProvider):
    """Groq, OpenAI and anything else speaking POST {base}/chat/completions"""

    def headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.config.api_key:
            headers['Authorization'] = f'Bearer {self.config.api_key}'
        return headers

    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/chat/completions"

    def payload(self, prompt: str) -> Dict[str, Any]:
        return {
            'model': self.config.model,
            'messages': [
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {'role': 'user', 'content': prompt}
            ],
            'response_format': {'type': 'json_object'},
            'temperature': 0,
            'max_tokens': self.config.max_tokens
        }

    async def complete(self, prompt: str) -> str:
        async with httpx.AsyncClient(timeout=self.config.timeout, transport=self.transport) as client:
            response = await client.post(self.endpoint(), headers=self.headers(), json=self.payload(prompt))

            if response.status_code != 200:
                raise ProviderError(self.name, f'status {response.status_code} - {response.text[:200]}')

            try:
                return response.json()['choices'][0]['message']['content']
            except (ValueError, KeyError, IndexError, TypeError) as e:
                raise ProviderError(self.name, f'unexpected response shape: {e}')


class OllamaProvider(OpenAICompatibleProvider):
    """Local Ollama through its OpenAI-compatible /v1 endpoint"""

    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/v1/chat/completions"

    async def is_available(self) -> bool:
        if not await super().is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=2.0, transport=self.transport) as client:
                response = await client.get(f"{self.config.base_url.rstrip('/')}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.info(f'Ollama not reachable at {self.config.base_url}: {e}')
            return False


def build_providers(
    configs: Sequence[ProviderConfig],
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> List[LLMProvider]:
    providers: List[LLMProvider] = []
    for config in configs:
        if config.local:
            providers.append(OllamaProvider(config, transport))
        else:
            providers.append(OpenAICompatibleProvider(config, transport))
    return providers


class LLMGateway:
    """Tries providers in priority order; always returns a well-formed result"""

    def __init__(
        self,
        providers: Optional[Sequence[LLMProvider]] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if providers is None:
            providers = build_providers(get_provider_configs(settings or get_settings()), transport)
        self.providers = list(providers)

    async def analyze(self, code: str, filename: str, language: str) -> LLMAuditResult:
        prompt = build_prompt(code, filename, language)

        for provider in self.providers:
            try:
                if not await provider.is_available():
                    continue

                logger.info(f'LLM audit: {provider.name} analyzing {filename}')
                result = await provider.analyze(prompt)
                logger.info(f'LLM audit: {provider.name} returned {len(result.findings)} findings')
                return result

            except ProviderError as e:
                logger.error(f'LLM provider failed: {e}')
            except Exception as e:
                logger.exception(f'LLM provider {provider.name} crashed: {e}')

        logger.warning(f'No LLM provider produced a result for {filename}')
        return LLMAuditResult(risk_score=0.0, findings=[], provider='none')
