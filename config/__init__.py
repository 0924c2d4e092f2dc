from config.settings import Settings, get_settings
from config.database import Database
from config.llm import ProviderConfig, get_provider_configs

__all__ = [
    'Settings', 'get_settings',
    'Database',
    'ProviderConfig', 'get_provider_configs'
]
