import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_TRANSLATE_URL = 'https://translate.googleapis.com/translate_a/single'

ENGLISH = 'en'
ARABIC = 'ar'


class TranslationError(Exception):
    """The translation service could not produce a translation."""


def translate(text: str, source_lang: str, target_lang: str, url: str = DEFAULT_TRANSLATE_URL, timeout: int = 10) -> str:
    """
    Translates `text` through the public Google translate endpoint.
    Blank text is returned as '' without a request.
    """
    if not text or not text.strip():
        return ''

    params = {'client': 'gtx', 'sl': source_lang, 'tl': target_lang, 'dt': 't', 'q': text}
    try:
        response = requests.get(url, params=params, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("Translation %s->%s failed: %s", source_lang, target_lang, e)
        raise TranslationError(f"Translation failed: {e}") from e

    # [[["ترجمة","translation",...], ...], ...] - long texts come back in several segments
    try:
        segments = [segment[0] for segment in data[0] if segment and segment[0]]
    except (TypeError, IndexError, KeyError) as e:
        raise TranslationError("Unexpected response from the translation service") from e
    if not segments:
        raise TranslationError("The translation service returned an empty result")
    return ''.join(segments)


def translate_to_arabic(text: str, **kwargs) -> str:
    return translate(text, ENGLISH, ARABIC, **kwargs)


def translate_to_english(text: str, **kwargs) -> str:
    return translate(text, ARABIC, ENGLISH, **kwargs)


def counterpart_field(field: str) -> str:
    """titleEn -> titleAr, storyAr -> storyEn."""
    if field.endswith('En'):
        return field[:-2] + 'Ar'
    if field.endswith('Ar'):
        return field[:-2] + 'En'
    raise ValueError(f"'{field}' is not a bilingual field")


def translate_field(values: dict, source_field: str, **kwargs):
    """
    Translates one field of a bilingual pair into its counterpart.
    Only the target is returned; the source value is never modified.

    Returns:
        tuple[str, str]: (target field name, translated text)
    """
    target_field = counterpart_field(source_field)
    if source_field.endswith('En'):
        return target_field, translate_to_arabic(values.get(source_field, ''), **kwargs)
    return target_field, translate_to_english(values.get(source_field, ''), **kwargs)
