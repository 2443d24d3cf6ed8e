"""Claude API client used to translate article titles."""

import asyncio

import httpx

from pubmed_notifier.config import Settings
from pubmed_notifier.core import TranslationError, Translator

LANGUAGE_NAMES = {
    "en": "English",
    "ja": "Japanese",
    "zh": "Chinese",
    "ko": "Korean",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "ru": "Russian",
}

SYSTEM_PROMPT = (
    "You translate biomedical article titles. Reply with the translation only, "
    "on one line, without quotes or commentary. Keep gene, protein, drug and "
    "isotope names as written."
)


class ClaudeTranslator(Translator):
    """Translator backed by the Anthropic Messages API."""

    def __init__(self, settings: Settings) -> None:
        config = settings.translation
        self.api_key = settings.anthropic_api_key
        self.model = config.model
        self.max_tokens = config.max_tokens
        self.base_url = "https://api.anthropic.com/v1"
        self.max_retries = config.max_retries
        self.initial_retry_delay = config.initial_retry_delay
        self.request_delay = config.request_delay
        self._last_request_time = 0.0

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate a title, raising TranslationError on failure."""
        if not text.strip() or source_lang == target_lang:
            return text
        if not self.api_key:
            raise TranslationError("ANTHROPIC_API_KEY is not set")

        source = LANGUAGE_NAMES.get(source_lang, source_lang)
        target = LANGUAGE_NAMES.get(target_lang, target_lang)
        prompt = f"Translate this title from {source} to {target}:\n\n{text}"

        try:
            reply = await self._call_api(prompt=prompt, system=SYSTEM_PROMPT)
        except (httpx.HTTPError, httpx.InvalidURL, KeyError, IndexError, ValueError, RuntimeError) as e:
            raise TranslationError(f"Translation request failed: {e}") from e

        translated = reply.strip().strip('"')
        if not translated:
            raise TranslationError("Translation service returned an empty reply")
        return translated

    async def _call_api(self, prompt: str, system: str) -> str:
        """Post one translation request, retrying 429, 5xx and network errors."""
        elapsed = asyncio.get_running_loop().time() - self._last_request_time
        if elapsed < self.request_delay:
            await asyncio.sleep(self.request_delay - elapsed)

        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": 0.0,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            try:
                async with httpx.AsyncClient(timeout=60.0) as client:
                    response = await client.post(f"{self.base_url}/messages", headers=headers, json=body)
            except httpx.RequestError:
                if last_attempt:
                    raise
                delay = self._backoff(attempt)
                print(f"⚠️  Translation request failed, retrying after {delay:.1f}s")
                await asyncio.sleep(delay)
                continue

            self._last_request_time = asyncio.get_running_loop().time()

            if response.status_code == 200:
                return response.json()["content"][0]["text"]

            if response.status_code == 429 or response.status_code >= 500:
                delay = self._get_retry_delay(response, attempt)
                print(f"⏳ Translation API answered {response.status_code}, retrying after {delay:.1f}s (attempt {attempt + 1}/{self.max_retries})")
                await asyncio.sleep(delay)
                continue

            # 4xx other than 429 will not get better on retry
            response.raise_for_status()

        raise RuntimeError(f"Translation API still failing after {self.max_retries} attempts")

    def _backoff(self, attempt: int) -> float:
        return self.initial_retry_delay * (2 ** attempt)

    def _get_retry_delay(self, response: httpx.Response, attempt: int) -> float:
        """Honour ``retry-after`` when present, else back off exponentially."""
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return self._backoff(attempt)
