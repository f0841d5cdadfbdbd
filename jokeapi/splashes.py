"""Localized splash texts with default-language fallback.

The splashes file looks like::

    {
        "defaultLang": "en",
        "splashes": [
            {"en": "Now with 100% more puns", "de": "Jetzt mit 100% mehr Wortspielen"},
            {"en": "Made with love"}
        ]
    }

Every object contributes its texts to the list of each language code it has.
"""

import asyncio
import json
import logging
import random
from pathlib import Path
from typing import Any, Optional

from jokeapi.errors import SplashLoadError

logger = logging.getLogger(__name__)


class SplashStore:
    """Owns the loaded splash texts. Load once, then read many times."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.splashes: dict[str, list[str]] = {}
        self.default_lang: str = "en"
        self._rng = rng or random.Random()
        self._loaded = False

    @classmethod
    async def from_file(cls, path: str | Path, rng: Optional[random.Random] = None) -> "SplashStore":
        store = cls(rng=rng)
        await store.load(path)
        return store

    @property
    def loaded(self) -> bool:
        return self._loaded

    def languages(self) -> list[str]:
        return list(self.splashes)

    async def load(self, path: str | Path) -> dict[str, list[str]]:
        """Read and project the splashes file.

        Raises:
            SplashLoadError: If the file can't be read or parsed, has the wrong
                shape, contains no splashes, or has none in the default language
        """
        path = Path(path)
        try:
            raw = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise SplashLoadError(f"Couldn't read splashes file '{path}' due to error: {e}") from e

        try:
            document = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise SplashLoadError(f"Splashes file '{path}' is not valid UTF-8: {e}") from e
        except json.JSONDecodeError as e:
            raise SplashLoadError(f"Splashes file '{path}' is not valid JSON: {e}") from e

        default_lang, splashes = self._project(document, path)

        self.default_lang = default_lang
        self.splashes = splashes
        self._loaded = True

        logger.info(
            f"Loaded {sum(len(v) for v in splashes.values())} splashes "
            f"in {len(splashes)} languages (default: {default_lang})"
        )
        return splashes

    @staticmethod
    def _project(document: Any, path: Path) -> tuple[str, dict[str, list[str]]]:
        if not isinstance(document, dict):
            raise SplashLoadError(f"Splashes file '{path}' must contain an object")

        default_lang = document.get("defaultLang")
        if not isinstance(default_lang, str) or not default_lang:
            raise SplashLoadError(f"Splashes file '{path}' has no valid 'defaultLang'")

        entries = document.get("splashes")
        if not isinstance(entries, list):
            raise SplashLoadError(f"Splashes file '{path}' has no 'splashes' list")

        splashes: dict[str, list[str]] = {}
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise SplashLoadError(f"splashes[{i}] in '{path}' is not an object")
            for lang_code, text in entry.items():
                if not isinstance(text, str):
                    raise SplashLoadError(
                        f"splashes[{i}].{lang_code} in '{path}' is not a string"
                    )
                splashes.setdefault(lang_code, []).append(text)

        if not splashes:
            raise SplashLoadError(f"No splashes present in file '{path}'")
        if not splashes.get(default_lang):
            raise SplashLoadError(
                f"No splashes present for default language '{default_lang}' in file '{path}'"
            )

        return default_lang, splashes

    def get(self, lang: Optional[str] = None) -> str:
        """Return a random splash in ``lang``, or in the default language if it has none."""
        if not self._loaded:
            raise SplashLoadError("Splashes have not been loaded")

        candidates = self.splashes.get(lang) if lang else None
        if not candidates:
            candidates = self.splashes[self.default_lang]
        return self._rng.choice(candidates)
