"""
Translation - Best-effort Arabic/English translation.

Three translators share one interface (``translate_detailed``):
- TranslationClient calls the hosted translate-text function
- DirectTranslator runs the same provider chain in-process with deep-translator
- GlossaryTranslator substitutes known real-estate terms offline

None of them raises. On any failure the original text comes back with
``translated=False``.
"""

import logging
import re
from typing import Optional, Protocol

from deep_translator import GoogleTranslator, MyMemoryTranslator
from requests.exceptions import RequestException

from nawartu.models import TranslationResult
from nawartu.services.backend import BackendClient, BackendError
from nawartu.utils import config

logger = logging.getLogger('Nawartu')


# Arabic, Arabic Supplement, Arabic Extended-A, Presentation Forms-A and -B
_ARABIC_PATTERN = re.compile(r"[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]")
_LATIN_PATTERN = re.compile(r'[A-Za-z]')

# MyMemory prepends or replaces the translation with a quota banner
_PROVIDER_WARNING_PATTERN = re.compile(
    r'MYMEMORY WARNING:.*?(?:TO TRANSLATE MORE|$)',
    re.IGNORECASE | re.DOTALL
)

LANGUAGES = ("en", "ar")


def detect_script(text: Optional[str]) -> Optional[str]:
    """
    Guess the language of a string from its script.

    Best-effort: any Arabic character makes the text Arabic, otherwise any
    Latin letter makes it English. Mixed-script strings and transliterations
    are classified by these rules alone.

    Returns:
        'ar', 'en' or None when neither script is present
    """
    if not text:
        return None
    if _ARABIC_PATTERN.search(text):
        return "ar"
    if _LATIN_PATTERN.search(text):
        return "en"
    return None


def strip_provider_warnings(text: str) -> str:
    """Remove translation-provider quota banners embedded in a result."""
    return _PROVIDER_WARNING_PATTERN.sub("", text).strip()


class Translator(Protocol):
    def translate_detailed(
        self,
        text: str,
        target_lang: str,
        source_lang: str = "auto"
    ) -> TranslationResult: ...


class BaseTranslator:
    """Shared guards and the plain-string convenience method."""

    def __init__(self, max_length: Optional[int] = None):
        self.max_length = max_length or config.translation_max_length

    def translate(self, text: str, target_lang: str, source_lang: str = "auto") -> str:
        """Translate ``text``; returns the original text on any failure."""
        return self.translate_detailed(text, target_lang, source_lang).text

    def translate_detailed(
        self,
        text: str,
        target_lang: str,
        source_lang: str = "auto"
    ) -> TranslationResult:
        """
        Translate ``text`` into ``target_lang``.

        Args:
            text: Text to translate
            target_lang: 'en' or 'ar'
            source_lang: 'en', 'ar' or 'auto'

        Returns:
            TranslationResult; ``translated`` is False when the original
            text was returned unchanged
        """
        if not text or not text.strip():
            return TranslationResult(text="")

        if source_lang == target_lang and source_lang != "auto":
            return TranslationResult(text=text)

        if target_lang not in LANGUAGES:
            logger.warning(f"Unsupported target language: {target_lang}")
            return TranslationResult(text=text)

        if len(text) > self.max_length:
            logger.warning(
                f"Text too long to translate ({len(text)} > {self.max_length} characters)"
            )
            return TranslationResult(text=text)

        translated = self._translate(text, target_lang, source_lang)
        if translated is None:
            return TranslationResult(text=text)

        cleaned = strip_provider_warnings(translated)
        if not cleaned:
            logger.warning("Translation result was only a provider warning")
            return TranslationResult(text=text)
        return TranslationResult(text=cleaned, translated=True)

    def _translate(self, text: str, target_lang: str, source_lang: str) -> Optional[str]:
        raise NotImplementedError


class TranslationClient(BaseTranslator):
    """
    Calls the hosted translate-text function.

    Request ``{text, sourceLang, targetLang}``; response ``{translatedText}``
    or ``{error, fallbackText}``.
    """

    def __init__(
        self,
        backend: BackendClient,
        function: Optional[str] = None,
        max_length: Optional[int] = None
    ):
        super().__init__(max_length)
        self.backend = backend
        self.function = function or config.translation_function

    def _translate(self, text: str, target_lang: str, source_lang: str) -> Optional[str]:
        try:
            data = self.backend.invoke(self.function, {
                "text": text,
                "sourceLang": source_lang,
                "targetLang": target_lang,
            })
        except (BackendError, RequestException) as e:
            logger.warning(f"Translation service error: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning("Translation service returned an unexpected payload")
            return None
        if data.get("error"):
            logger.warning(f"Translation error: {data['error']}")
            return None
        return data.get("translatedText") or None


class DirectTranslator(BaseTranslator):
    """
    In-process translation with deep-translator.

    Tries MyMemory first (better Arabic output), then Google.
    """

    # MyMemory wants regional locale codes
    MYMEMORY_CODES = {"en": "en-GB", "ar": "ar-SA"}

    def __init__(self, max_length: Optional[int] = None):
        super().__init__(max_length)

    def _translate(self, text: str, target_lang: str, source_lang: str) -> Optional[str]:
        source = source_lang
        if source == "auto":
            source = detect_script(text) or "auto"

        if source in self.MYMEMORY_CODES:
            try:
                result = MyMemoryTranslator(
                    source=self.MYMEMORY_CODES[source],
                    target=self.MYMEMORY_CODES[target_lang],
                ).translate(text)
                if result and strip_provider_warnings(result):
                    return result
            except Exception as e:
                logger.debug(f"MyMemory translation failed, falling back to Google: {e}")

        try:
            return GoogleTranslator(source=source, target=target_lang).translate(text) or None
        except Exception as e:
            logger.warning(f"Translation failed for '{text[:40]}': {e}")
            return None


class GlossaryTranslator(BaseTranslator):
    """
    Offline word-for-word substitution of common real-estate terms.

    Only terms in the glossary change; everything else passes through, so the
    output can be mixed-language.
    """

    EN_TO_AR = {
        # Property types
        "apartment": "شقة",
        "house": "منزل",
        "villa": "فيلا",
        "studio": "استوديو",
        "penthouse": "بنتهاوس",
        "duplex": "دوبلكس",
        "townhouse": "تاون هاوس",

        # Location terms
        "city center": "وسط المدينة",
        "downtown": "وسط البلد",
        "old city": "المدينة القديمة",
        "new city": "المدينة الجديدة",
        "neighborhood": "الحي",
        "district": "المنطقة",
        "street": "شارع",
        "avenue": "جادة",
        "road": "طريق",
        "square": "ساحة",

        # Adjectives
        "luxury": "فاخر",
        "modern": "عصري",
        "traditional": "تقليدي",
        "spacious": "واسع",
        "cozy": "مريح",
        "beautiful": "جميل",
        "stunning": "مذهل",
        "comfortable": "مريح",
        "elegant": "أنيق",
        "bright": "مشرق",
        "quiet": "هادئ",
        "central": "مركزي",
        "furnished": "مفروش",
        "unfurnished": "غير مفروش",

        # Phrases and amenities
        "with": "مع",
        "near": "بالقرب من",
        "close to": "قريب من",
        "walking distance": "مسافة المشي",
        "minutes from": "دقائق من",
        "overlooking": "يطل على",
        "facing": "يواجه",
        "terrace": "تراس",
        "balcony": "شرفة",
        "garden": "حديقة",
        "parking": "موقف سيارات",
        "garage": "كراج",
        "pool": "مسبح",
        "gym": "نادي رياضي",
        "security": "أمن",
        "elevator": "مصعد",

        # Syrian cities and neighborhoods
        "damascus": "دمشق",
        "aleppo": "حلب",
        "homs": "حمص",
        "latakia": "اللاذقية",
        "tartous": "طرطوس",
        "hama": "حماة",
        "deir ez-zor": "دير الزور",
        "raqqa": "الرقة",
        "daraa": "درعا",
        "sweida": "السويداء",
        "quneitra": "القنيطرة",
        "idlib": "إدلب",
        "hasaka": "الحسكة",
        "malki": "المالكي",
        "mezzeh": "المزة",
        "kafarsouseh": "كفرسوسة",
        "jaramana": "جرمانا",
        "old damascus": "دمشق القديمة",
    }

    AR_TO_EN = {
        **{ar: en for en, ar in EN_TO_AR.items()},
        "شقة فاخرة": "luxury apartment",
        "منزل جميل": "beautiful house",
        "فيلا عصرية": "modern villa",
        "في وسط المدينة": "in city center",
        "قريب من": "close to",
        "مع إطلالة": "with view",
        "مفروش بالكامل": "fully furnished",
        "غرفة نوم": "bedroom",
        "غرف نوم": "bedrooms",
        "حمام": "bathroom",
        "مطبخ": "kitchen",
        "صالون": "living room",
        "صالة": "living room",
    }

    def __init__(self, max_length: Optional[int] = None):
        super().__init__(max_length)
        self._patterns = {
            "en": self._compile(self.EN_TO_AR),
            "ar": self._compile(self.AR_TO_EN),
        }

    @staticmethod
    def _compile(table: dict[str, str]) -> list[tuple[re.Pattern[str], str]]:
        # Longest terms first so "old damascus" wins over "damascus"
        terms = sorted(table, key=len, reverse=True)
        return [
            (re.compile(rf'(?<!\w){re.escape(term)}(?!\w)', re.IGNORECASE), table[term])
            for term in terms
        ]

    def _translate(self, text: str, target_lang: str, source_lang: str) -> Optional[str]:
        source = source_lang if source_lang != "auto" else detect_script(text)
        if source not in self._patterns or source == target_lang:
            return None

        result = text if source == "ar" else text.lower()
        for pattern, replacement in self._patterns[source]:
            result = pattern.sub(replacement, result)

        if target_lang == "en" and result:
            result = result[0].upper() + result[1:]

        if result.strip().lower() == text.strip().lower():
            return None
        return result


def create_translator(backend: Optional[BackendClient] = None) -> BaseTranslator:
    """
    Build the translator selected by ``translation.mode`` in config.

    'remote' needs a backend client; without one the direct translator is used.
    """
    mode = config.translation_mode
    if mode == "remote" and backend is not None:
        return TranslationClient(backend)
    if mode == "glossary":
        return GlossaryTranslator()
    return DirectTranslator()
