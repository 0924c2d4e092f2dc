# Error taxonomy
#
# Errors from flaky external dependencies (LLM providers, the GitHub API) are
# recovered close to where they happen; configuration defects are logged loudly
# but never take the service down.


class ZeroFalseError(Exception):
    """Base class for all service errors"""


class AuthError(ZeroFalseError):
    """GitHub App credentials missing/invalid or installation token exchange failed"""


class ProviderError(ZeroFalseError):
    """A single LLM provider failed (HTTP error, timeout, malformed JSON)"""

    def __init__(self, provider: str, message: str):
        super().__init__(f'{provider}: {message}')
        self.provider = provider


class FetchError(ZeroFalseError):
    """A GitHub resource could not be retrieved"""


class EmptyInputError(ZeroFalseError):
    """Scan requested with no code"""


class ParseError(ZeroFalseError):
    """Malformed webhook payload or malformed LLM JSON"""
