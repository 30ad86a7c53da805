from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import List, Optional

BOARD_SIZE = 15
RACK_SIZE = 7
BINGO_BONUS = 50
MIN_BAG_FOR_EXCHANGE = 7
PASSES_TO_END = 2
CENTER = (BOARD_SIZE // 2, BOARD_SIZE // 2)

MAX_COMMIT_ATTEMPTS = 3


def _origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return ['*']
    return [o.strip() for o in raw.split(',') if o.strip()]


@dataclass
class Settings:
    """Runtime configuration, read from the environment."""
    assistant: str = 'dictionary'  # 'dictionary' | 'llm'
    api_key: Optional[str] = None
    llm_model: str = 'openai/gpt-4o-mini'
    llm_url: str = 'https://openrouter.ai/api/v1/chat/completions'
    llm_timeout: float = 30.0
    bot_uid: str = 'bitty-botty-001'
    wordlist_path: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ['*'])
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            assistant=os.getenv('WORDCLASH_ASSISTANT', 'dictionary').lower(),
            api_key=os.getenv('OPENROUTER_API_KEY'),
            llm_model=os.getenv('WORDCLASH_LLM_MODEL', cls.llm_model),
            llm_url=os.getenv('WORDCLASH_LLM_URL', cls.llm_url),
            llm_timeout=float(os.getenv('WORDCLASH_LLM_TIMEOUT', '30')),
            bot_uid=os.getenv('WORDCLASH_BOT_UID', cls.bot_uid),
            wordlist_path=os.getenv('WORDCLASH_WORDLIST') or None,
            cors_origins=_origins(os.getenv('WORDCLASH_CORS_ORIGINS')),
            log_level=os.getenv('WORDCLASH_LOG_LEVEL', 'INFO').upper(),
        )


settings = Settings.from_env()
