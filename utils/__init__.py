from utils.crypto import verify_github_signature, sign_payload, generate_id, hash_data
from utils.errors import ZeroFalseError, AuthError, ProviderError, FetchError, EmptyInputError, ParseError

__all__ = [
    'verify_github_signature', 'sign_payload', 'generate_id', 'hash_data',
    'ZeroFalseError', 'AuthError', 'ProviderError', 'FetchError', 'EmptyInputError', 'ParseError'
]
