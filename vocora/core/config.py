"""
Vocora Central Configuration
Contains model names, service endpoints, and other configurable parameters
"""

from dataclasses import dataclass
from typing import List, Optional
import os

import yaml


@dataclass
class ModelConfig:
    """Configuration for the generative models used by Vocora"""

    # Story generation
    story_provider: str = "openai"  # "openai" or "ollama"
    openai_model: str = "gpt-4o-mini"
    ollama_model: str = "llama3"
    story_temperature: float = 0.7
    story_max_tokens: int = 600
    story_sentences: int = 6

    # Image generation
    image_provider: str = "openai"  # "openai" or "huggingface"
    openai_image_model: str = "dall-e-2"
    image_size: str = "512x512"
    huggingface_image_model: str = "stabilityai/stable-diffusion-xl-base-1.0"

    def __post_init__(self):
        """Validate provider names"""
        if self.story_provider not in ("openai", "ollama"):
            raise ValueError(f"Unknown story provider: {self.story_provider}")
        if self.image_provider not in ("openai", "huggingface"):
            raise ValueError(f"Unknown image provider: {self.image_provider}")


@dataclass
class APIConfig:
    """Configuration for external endpoints and limits"""

    dictionary_url: str = "https://api.dictionaryapi.dev/api/v2/entries/en"
    huggingface_url: str = "https://api-inference.huggingface.co/models"

    # Timeouts
    request_timeout: int = 15
    llm_timeout: int = 120

    # Definitions kept by the API process
    definition_cache_size: int = 1024

    # Credentials (normally supplied through the environment)
    openai_api_key: Optional[str] = None
    huggingface_token: Optional[str] = None

    # Flask server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: Optional[List[str]] = None


@dataclass
class StoreConfig:
    """Configuration for the hosted vocabulary table"""

    backend: str = "memory"  # "memory" or "supabase"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    table: str = "messages"
    word_column: str = "text"
    user_column: str = "user_id"
    order_column: str = "id"
    shared_user_id: str = "shared"


@dataclass
class VocoraConfig:
    """Main configuration class combining all settings"""

    models: ModelConfig
    api: APIConfig
    store: StoreConfig

    # Logging
    log_level: str = "INFO"

    def __init__(self,
                 models: Optional[ModelConfig] = None,
                 api: Optional[APIConfig] = None,
                 store: Optional[StoreConfig] = None):
        """Initialize with optional custom configurations"""
        self.models = models or ModelConfig()
        self.api = api or APIConfig()
        self.store = store or StoreConfig()
        self.log_level = "INFO"

        # Override with environment variables if present
        self._load_env_overrides()

    def _load_env_overrides(self):
        """Load configuration overrides from environment variables"""
        # Model overrides
        if os.getenv("VOCORA_STORY_PROVIDER"):
            self.models.story_provider = os.getenv("VOCORA_STORY_PROVIDER")

        if os.getenv("VOCORA_OPENAI_MODEL"):
            self.models.openai_model = os.getenv("VOCORA_OPENAI_MODEL")

        if os.getenv("VOCORA_OLLAMA_MODEL"):
            self.models.ollama_model = os.getenv("VOCORA_OLLAMA_MODEL")

        if os.getenv("VOCORA_IMAGE_PROVIDER"):
            self.models.image_provider = os.getenv("VOCORA_IMAGE_PROVIDER")

        if os.getenv("VOCORA_HF_IMAGE_MODEL"):
            self.models.huggingface_image_model = os.getenv("VOCORA_HF_IMAGE_MODEL")

        # Credentials
        if os.getenv("OPENAI_API_KEY"):
            self.api.openai_api_key = os.getenv("OPENAI_API_KEY")

        if os.getenv("HF_API_TOKEN"):
            self.api.huggingface_token = os.getenv("HF_API_TOKEN")

        if os.getenv("VOCORA_DICTIONARY_URL"):
            self.api.dictionary_url = os.getenv("VOCORA_DICTIONARY_URL")

        if os.getenv("VOCORA_CORS_ORIGINS"):
            self.api.cors_origins = [
                x.strip() for x in os.getenv("VOCORA_CORS_ORIGINS").split(",") if x.strip()
            ]

        # Vocabulary store
        if os.getenv("SUPABASE_URL"):
            self.store.supabase_url = os.getenv("SUPABASE_URL")
            self.store.backend = "supabase"

        if os.getenv("SUPABASE_KEY"):
            self.store.supabase_key = os.getenv("SUPABASE_KEY")

        if os.getenv("VOCORA_STORE_BACKEND"):
            self.store.backend = os.getenv("VOCORA_STORE_BACKEND")

        # Debug override
        if os.getenv("VOCORA_DEBUG", "").lower() in ("true", "1", "yes"):
            self.log_level = "DEBUG"

    @classmethod
    def load_from_file(cls, config_path: str) -> 'VocoraConfig':
        """Load configuration from YAML file"""
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}

            models = ModelConfig(**config_data.get('models', {}))
            api = APIConfig(**config_data.get('api', {}))
            store = StoreConfig(**config_data.get('store', {}))

            config = cls(models=models, api=api, store=store)

            # Override other settings
            for key, value in config_data.items():
                if key not in ['models', 'api', 'store'] and hasattr(config, key):
                    setattr(config, key, value)

            return config

        except (OSError, TypeError, yaml.YAMLError) as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")

    def save_to_file(self, config_path: str):
        """Save configuration to YAML file (credentials are never written)"""
        config_data = {
            'models': {
                'story_provider': self.models.story_provider,
                'openai_model': self.models.openai_model,
                'ollama_model': self.models.ollama_model,
                'story_temperature': self.models.story_temperature,
                'story_max_tokens': self.models.story_max_tokens,
                'story_sentences': self.models.story_sentences,
                'image_provider': self.models.image_provider,
                'openai_image_model': self.models.openai_image_model,
                'image_size': self.models.image_size,
                'huggingface_image_model': self.models.huggingface_image_model
            },
            'api': {
                'dictionary_url': self.api.dictionary_url,
                'huggingface_url': self.api.huggingface_url,
                'request_timeout': self.api.request_timeout,
                'llm_timeout': self.api.llm_timeout,
                'definition_cache_size': self.api.definition_cache_size,
                'host': self.api.host,
                'port': self.api.port,
                'cors_origins': self.api.cors_origins
            },
            'store': {
                'backend': self.store.backend,
                'supabase_url': self.store.supabase_url,
                'table': self.store.table,
                'word_column': self.store.word_column,
                'user_column': self.store.user_column,
                'order_column': self.store.order_column,
                'shared_user_id': self.store.shared_user_id
            },
            'log_level': self.log_level
        }

        with open(config_path, 'w') as f:
            yaml.dump(config_data, f, default_flow_style=False, indent=2)


# Default global configuration instance
default_config = VocoraConfig()
