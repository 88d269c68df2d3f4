import asyncio
import aiohttp
from daiary.config import settings
from daiary.core.errors import ConfigurationError, TransportError
from daiary.core.logger import logger


class ModelClient:
    """One-shot text generation against Gemini or a local Ollama."""

    def __init__(self, provider: str | None = None):
        self.provider = (provider or settings.LLM_PROVIDER).lower()
        if self.provider not in ("gemini", "ollama"):
            raise ConfigurationError(f"unknown LLM provider: {self.provider}")

    async def generate(self, prompt: str) -> str:
        if self.provider == "ollama":
            return await self._call_ollama(prompt)
        return await self._call_gemini(prompt)

    async def _call_gemini(self, prompt: str) -> str:
        if not settings.GEMINI_API_KEY:
            raise ConfigurationError("GEMINI_API_KEY is not configured")

        url = settings.GEMINI_URL.format(model=settings.GEMINI_MODEL)
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": settings.TEMPERATURE,
                "maxOutputTokens": settings.MAX_TOKENS,
            },
        }
        data = await self._post(url, payload, params={"key": settings.GEMINI_API_KEY})

        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts)

    async def _call_ollama(self, prompt: str) -> str:
        payload = {
            "model": settings.OLLAMA_MODEL,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": settings.TEMPERATURE,
                "num_predict": settings.MAX_TOKENS
            }
        }
        data = await self._post(settings.OLLAMA_URL, payload)
        return data.get("response", "").strip()

    async def _post(self, url: str, payload: dict, params: dict | None = None) -> dict:
        timeout = aiohttp.ClientTimeout(total=settings.REQUEST_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, json=payload, params=params) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        logger.error("{} request failed: {} {}", self.provider, resp.status, body[:500])
                        raise TransportError(f"model service returned HTTP {resp.status}")
                    return await resp.json()
        except aiohttp.ClientError as e:
            logger.error("Error calling {}: {}", self.provider, e)
            raise TransportError(f"could not reach model service: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error("{} request timed out", self.provider)
            raise TransportError("model service timed out") from e


# Singleton
_model_client = None

def get_model_client():
    global _model_client
    if _model_client is None:
        _model_client = ModelClient()
    return _model_client
