"""
Bilingual Content Resolver - Display text for listings in Arabic or English.

Listings carry optional per-language fields (``name_ar``, ``name_en``,
``name``, and the same for description and location). For a preferred
language the resolver picks the authored field when it is in the right
script, otherwise translates the other language, otherwise falls back to
the generic field and finally a localized placeholder. A translation that
fails shows its source text unchanged. With auto-translation off the generic
field comes first and the offline glossary stands in for the translator,
never flagged. The result is never an empty string.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Optional

from nawartu.models import ResolvedContent, TranslationResult
from nawartu.services.backend import BackendClient, BackendError
from nawartu.services.translation import (
    BaseTranslator,
    GlossaryTranslator,
    detect_script,
)
from nawartu.utils import config
from nawartu.utils.i18n import normalize_language, other_language, t

logger = logging.getLogger('Nawartu')

FIELDS = ("name", "description", "location")

# (source text, source language, target language)
TranslationJob = tuple[str, str, str]


def _text(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    if not isinstance(value, str):
        return ""
    return value.strip()


def matches_language(text: str, lang: str) -> bool:
    """
    Check if ``text`` looks like it is written in ``lang``.

    Text with no letters of either script (numbers, punctuation) is accepted
    for both languages.
    """
    script = detect_script(text)
    return script is None or script == lang


class BilingualContentResolver:
    """
    Resolves listing text for display and fills missing translations.

    Translation goes through the injected translator and is best-effort: a
    failed translation never raises and never blocks other fields.
    """

    def __init__(
        self,
        translator: Optional[BaseTranslator] = None,
        backend: Optional[BackendClient] = None,
        max_workers: Optional[int] = None,
        glossary: Optional[GlossaryTranslator] = None
    ):
        """
        Initialize the resolver.

        Args:
            translator: Remote or direct translator (None = no auto-translation)
            backend: When given, auto-translations of records with an ``id``
                are written back to the listings table
            max_workers: Concurrency cap for batch translation (None = config)
            glossary: Offline translator used when auto-translation is off
        """
        self.translator = translator
        self.backend = backend
        self.max_workers = max_workers or config.translation_max_concurrency
        self.glossary = glossary or GlossaryTranslator()

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def _plan_field(
        self,
        record: dict[str, Any],
        field: str,
        lang: str
    ) -> tuple[Optional[str], Optional[TranslationJob]]:
        """
        Decide how to fill one field.

        Returns:
            (direct text, None) when the authored field can be used as is,
            (None, job) when a translation is needed, or (None, None) when
            only the fallback chain is left
        """
        primary = _text(record, f"{field}_{lang}")
        if primary and matches_language(primary, lang):
            return primary, None

        other = other_language(lang)
        opposite = _text(record, f"{field}_{other}")
        if opposite:
            return None, (opposite, other, lang)
        if primary:
            # Authored in the wrong script, e.g. English typed into name_ar
            return None, (primary, detect_script(primary) or "auto", lang)
        return None, None

    @staticmethod
    def _fallback(record: dict[str, Any], field: str, lang: str) -> str:
        other = other_language(lang)
        for key in (field, f"{field}_{lang}", f"{field}_{other}"):
            value = _text(record, key)
            if value:
                return value
        return t(f"placeholder.{field}", lang)

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def _run_job(self, job: TranslationJob) -> TranslationResult:
        text, source, target = job
        if self.translator is None:
            return TranslationResult(text=text)
        try:
            return self.translator.translate_detailed(text, target, source)
        except Exception as e:
            # Translators are not supposed to raise; keep the batch alive if one does
            logger.warning(f"Translator raised for '{text[:40]}': {e}")
            return TranslationResult(text=text)

    def _offline_value(
        self,
        record: dict[str, Any],
        field: str,
        lang: str,
        job: Optional[TranslationJob]
    ) -> str:
        """Generic field, then a glossary rendering of the source, then the fallback chain."""
        generic = _text(record, field)
        if generic:
            return generic
        if job:
            text, source, target = job
            return self.glossary.translate(text, target, source) or text
        return self._fallback(record, field, lang)

    def _run_jobs(self, jobs: list[TranslationJob]) -> dict[TranslationJob, TranslationResult]:
        """Run unique translation jobs concurrently, capped at ``max_workers``."""
        unique = list(dict.fromkeys(jobs))
        if not unique:
            return {}
        if len(unique) == 1:
            return {unique[0]: self._run_job(unique[0])}

        logger.debug(f"Translating {len(unique)} field(s) with up to {self.max_workers} workers")
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(unique))) as pool:
            results = pool.map(self._run_job, unique)
            return dict(zip(unique, results))

    # ------------------------------------------------------------------
    # Display resolution
    # ------------------------------------------------------------------

    def resolve(
        self,
        record: dict[str, Any],
        lang: str,
        auto_translate: bool = True
    ) -> ResolvedContent:
        """
        Resolve name, description and location of one record for display.

        Args:
            record: Listing row (any subset of the bilingual fields)
            lang: Preferred language, 'ar' or 'en'
            auto_translate: Use the translator for missing fields

        Returns:
            ResolvedContent with non-empty strings
        """
        return self.resolve_many([record], lang, auto_translate)[0]

    def resolve_many(
        self,
        records: list[dict[str, Any]],
        lang: str,
        auto_translate: bool = True
    ) -> list[ResolvedContent]:
        """
        Resolve a batch of records.

        Only fields that need it are translated. Translations fan out
        concurrently with no ordering between records; a failed translation
        shows its source text without the auto-translated flag.
        """
        lang = normalize_language(lang)
        online = auto_translate and self.translator is not None
        plans = []
        jobs: list[TranslationJob] = []

        for record in records:
            plan = {}
            for field in FIELDS:
                direct, job = self._plan_field(record, field, lang)
                plan[field] = (direct, job)
                if job and online:
                    jobs.append(job)
            plans.append(plan)

        translations = self._run_jobs(jobs)

        results = []
        for record, plan in zip(records, plans):
            values: dict[str, str] = {}
            flags = {field: False for field in FIELDS}
            for field in FIELDS:
                direct, job = plan[field]
                if direct:
                    values[field] = direct
                    continue
                if not online:
                    values[field] = self._offline_value(record, field, lang, job)
                    continue
                if job is None:
                    values[field] = self._fallback(record, field, lang)
                    continue
                result = translations[job]
                if result.translated and result.text:
                    values[field] = result.text
                    flags[field] = True
                else:
                    values[field] = job[0]

            resolved = ResolvedContent(
                name=values["name"],
                description=values["description"],
                location=values["location"],
                auto_translated=flags,
            )
            if resolved.any_auto_translated:
                self._save_translations(record, resolved, lang)
            results.append(resolved)

        return results

    def _save_translations(self, record: dict[str, Any], resolved: ResolvedContent, lang: str) -> None:
        """Write auto-translated fields back to the listing row."""
        listing_id = record.get("id")
        if self.backend is None or not listing_id:
            return

        updates: dict[str, Any] = {}
        for field in FIELDS:
            if resolved.auto_translated[field]:
                updates[f"{field}_{lang}"] = getattr(resolved, field)
                updates[f"{field}_{lang}_auto_translated"] = True
        updates["last_translation_update"] = datetime.now(timezone.utc).isoformat()

        try:
            self.backend.update("listings", updates, {"id": listing_id})
            logger.debug(f"Saved auto-translated fields for listing {listing_id}")
        except BackendError as e:
            logger.warning(f"Failed to save auto-translated content for {listing_id}: {e}")

    # ------------------------------------------------------------------
    # Filling missing translations
    # ------------------------------------------------------------------

    @staticmethod
    def _missing_jobs(record: dict[str, Any]) -> list[tuple[str, TranslationJob]]:
        jobs = []
        for field in FIELDS:
            en = _text(record, f"{field}_en")
            ar = _text(record, f"{field}_ar")
            if en and not ar:
                jobs.append((f"{field}_ar", (en, "en", "ar")))
            elif ar and not en:
                jobs.append((f"{field}_en", (ar, "ar", "en")))
        return jobs

    @classmethod
    def needs_translation(cls, record: dict[str, Any]) -> bool:
        """True when a field is present in one language only."""
        return bool(cls._missing_jobs(record))

    def auto_translate_listing(self, record: dict[str, Any]) -> dict[str, Any]:
        """
        Fill ``_ar``/``_en`` fields that exist in one language only.

        Returns:
            A copy of the record with translated fields and
            ``<field>_<lang>_auto_translated`` flags set for each success
        """
        return self.batch_translate_listings([record])[0]

    def batch_translate_listings(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Apply :meth:`auto_translate_listing` to every record that needs it."""
        per_record = [self._missing_jobs(record) for record in records]
        translations = self._run_jobs([job for jobs in per_record for _, job in jobs])

        results = []
        for record, jobs in zip(records, per_record):
            if not jobs:
                results.append(record)
                continue
            updated = dict(record)
            for key, job in jobs:
                result = translations[job]
                if result.translated:
                    updated[key] = result.text
                    updated[f"{key}_auto_translated"] = True
            results.append(updated)
        return results
