from __future__ import annotations
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Protocol

import aiohttp
from pydantic import ValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from .config import Settings
from .dictionary import DictionaryService
from .schemas import BotMoveProposal, WordSuggestions, WordValidation

logger = logging.getLogger(__name__)


class WordAssistant(Protocol):
    """The three collaborator calls the rules engine depends on."""

    async def validate_word(self, word: str) -> WordValidation: ...

    async def suggest_word(self, tiles: str, board_state: str) -> WordSuggestions: ...

    async def generate_bot_move(self, tiles: str, board_state: str, difficulty: str) -> Optional[BotMoveProposal]: ...


VALIDATE_PROMPT = """You are a Scrabble dictionary expert. Determine if the following word is a valid English word according to standard Scrabble rules. Do not allow proper nouns, abbreviations, or words with punctuation.

Word: {word}

Respond with a JSON object: {{"isValid": true|false, "reason": "<brief reason>"}}"""

SUGGEST_PROMPT = """You are a Scrabble assistant. Given the current tiles of the player and the current state of the board, suggest valid words that the player can play. A space in the tiles is a blank that can stand for any letter.

Current tiles: {tiles}
Current board state (JSON, keys are "row-col"): {board_state}

Respond with a JSON object: {{"suggestions": ["WORD", ...]}}"""

BOT_MOVE_PROMPT = """You are an expert Scrabble/Word game bot. Your goal is to find the best valid move given your tiles and the current board state.

Current tiles: {tiles}
Current board state (JSON, keys are "row-col", 0-based): {board_state}
Difficulty: {difficulty}

Rules:
1. You must form a valid English word.
2. You must connect to existing tiles on the board (unless it's the first move, which must cover row 7, column 7).
3. You must only use the tiles you have (plus existing board tiles).
4. Output the full word including letters already on the board, its start coordinates, and direction.

Strategy based on difficulty:
- Easy: Play a short, common word. Avoid high-scoring placements.
- Medium: Play a decent word. Don't spend too much time optimizing.
- Hard: Find the highest scoring move possible. Use bonus squares if available.

Respond with a JSON object: {{"word": "WORD", "startRow": 0, "startCol": 0, "direction": "horizontal"|"vertical"}}.
If no valid move is possible, respond with {{"word": ""}}."""


class LLMAssistant:
    """Language-model backed assistant over an OpenRouter-style chat API."""

    def __init__(self, api_key: str, model: str, url: str, timeout: float = 30.0):
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY environment variable not set")
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(
            (aiohttp.ClientError, json.JSONDecodeError, asyncio.TimeoutError)
        ),
        reraise=True,
    )
    async def _complete(self, prompt: str) -> Dict[str, Any]:
        logger.debug("Sending request to model: %s", self.model)
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "HTTP-Referer": "http://localhost",
                    "X-Title": "WordClash",
                },
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "response_format": {"type": "json_object"},
                    "temperature": 0.2,
                },
            ) as response:
                response.raise_for_status()
                result = await response.json()

        try:
            content = result["choices"][0]["message"]["content"] or ''
            if not isinstance(content, str):
                raise TypeError(f"content is {type(content).__name__}")
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected API response format: %s", json.dumps(result)[:500])
            raise aiohttp.ClientError("Malformed completion response") from e
        return json.loads(_strip_fences(content))

    async def validate_word(self, word: str) -> WordValidation:
        if not word or len(word) < 2:
            return WordValidation(isValid=False, reason="Words must be at least 2 letters long.")
        data = await self._complete(VALIDATE_PROMPT.format(word=word.upper()))
        try:
            return WordValidation.model_validate(data)
        except ValidationError as e:
            logger.error("Malformed validation response for %s: %s", word, e)
            raise aiohttp.ClientError("Malformed validation response") from e

    async def suggest_word(self, tiles: str, board_state: str) -> WordSuggestions:
        data = await self._complete(SUGGEST_PROMPT.format(tiles=tiles, board_state=board_state))
        try:
            suggestions = WordSuggestions.model_validate(data)
        except ValidationError as e:
            logger.warning("Malformed suggestion response: %s", e)
            return WordSuggestions()
        return WordSuggestions(suggestions=[s.upper() for s in suggestions.suggestions if s.strip()])

    async def generate_bot_move(self, tiles: str, board_state: str, difficulty: str) -> Optional[BotMoveProposal]:
        prompt = BOT_MOVE_PROMPT.format(tiles=tiles, board_state=board_state, difficulty=difficulty)
        try:
            data = await self._complete(prompt)
        except (aiohttp.ClientError, json.JSONDecodeError, asyncio.TimeoutError) as e:
            logger.error("Error generating bot move: %s", e)
            return None
        if not isinstance(data, dict) or not data.get('word'):
            return None
        try:
            return BotMoveProposal.model_validate(data)
        except ValidationError as e:
            logger.warning("Discarding malformed bot move %s: %s", data, e)
            return None


def _strip_fences(content: str) -> str:
    content = content.strip()
    if content.startswith('```'):
        lines: List[str] = content.splitlines()[1:]
        if lines and lines[-1].strip().startswith('```'):
            lines = lines[:-1]
        content = '\n'.join(lines)
    return content


def build_assistant(settings: Settings) -> WordAssistant:
    if settings.assistant == 'llm':
        logger.info("Using language-model assistant (%s)", settings.llm_model)
        return LLMAssistant(settings.api_key or '', settings.llm_model, settings.llm_url, settings.llm_timeout)
    logger.info("Using word-list assistant")
    return DictionaryService.from_path(settings.wordlist_path)
