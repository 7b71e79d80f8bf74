"""
API client for the words backend (the service of record for cards)
"""
import aiohttp
import logging
from dataclasses import dataclass
from typing import Optional

from .cards import Card
from .config import WORDS_API_URL, WORDS_API_TIMEOUT

logger = logging.getLogger(__name__)


class WordsAPIError(Exception):
    """Non-success response from the words backend"""

    def __init__(self, status: int, detail: str = ""):
        self.status = status
        self.detail = detail
        super().__init__(f"API error {status}: {detail}" if detail else f"API error {status}")


class WordNotFoundError(WordsAPIError):
    pass


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one mutation sent to the backend"""
    ok: bool
    error: Optional[BaseException] = None

    @classmethod
    def success(cls) -> 'SyncResult':
        return cls(ok=True)

    @classmethod
    def failure(cls, error: BaseException) -> 'SyncResult':
        return cls(ok=False, error=error)


class WordsAPIClient:
    """Async HTTP client for the words backend API"""

    def __init__(self, base_url: str = WORDS_API_URL, timeout: float = WORDS_API_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(self, method: str, endpoint: str, **kwargs) -> dict | list | None:
        session = await self._get_session()
        url = f"{self.base_url}{endpoint}"

        try:
            async with session.request(method, url, **kwargs) as response:
                if response.status == 204:
                    return None
                if not response.ok:
                    error_text = await response.text()
                    logger.error(f"API error {response.status} on {method} {endpoint}: {error_text}")
                    if response.status == 404:
                        raise WordNotFoundError(response.status, error_text)
                    raise WordsAPIError(response.status, error_text)
                return await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"HTTP client error on {method} {endpoint}: {e}")
            raise

    # ==================== Words ====================

    async def get_words(self) -> list[Card]:
        """Get every card, in backend order"""
        data = await self._request('GET', '/words')
        return [Card.from_dict(w) for w in (data or [])]

    async def get_word(self, card_id: str) -> Card:
        """Get a single card by ID"""
        data = await self._request('GET', f'/words/{card_id}')
        return Card.from_dict(data)

    async def set_learned(self, card_id: str, learned: bool) -> None:
        await self._request('POST', f'/words/{card_id}/learn', json={'learned': learned})

    async def set_favourite(self, card_id: str, is_favourite: bool) -> None:
        await self._request('POST', f'/words/{card_id}/favorite', json={'isFavourite': is_favourite})

    async def add_time(self, card_id: str, seconds: int) -> None:
        """Add ``seconds`` to the card's total; the backend accumulates"""
        await self._request('POST', f'/words/{card_id}/time', json={'seconds': seconds})
