"""
Language code normalization.
"""

DEFAULT_LANGUAGE = "en"

LANGUAGE_ALIASES = {
    "english": "en", "eng": "en",
    "turkish": "tr", "tur": "tr", "turkce": "tr", "türkçe": "tr",
    "german": "de", "deutsch": "de",
    "french": "fr", "francais": "fr", "français": "fr",
    "spanish": "es", "espanol": "es", "español": "es",
    "italian": "it", "italiano": "it",
    "portuguese": "pt", "português": "pt",
    "russian": "ru",
    "chinese": "zh", "mandarin": "zh", "cantonese": "yue",
    "simplified chinese": "zh-hans", "traditional chinese": "zh-hant",
    "japanese": "ja",
    "arabic": "ar",
    "korean": "ko", "hangul": "ko",
    "dutch": "nl", "nederlands": "nl",
    "polish": "pl", "polski": "pl",
    "swedish": "sv", "svenska": "sv",
    "norwegian": "no", "norsk": "no",
    "danish": "da", "dansk": "da",
    "finnish": "fi", "suomi": "fi",
    "greek": "el", "hellenic": "el",
    "czech": "cs", "cesky": "cs", "čeština": "cs",
    "slovak": "sk", "slovencina": "sk", "slovenčina": "sk",
    "hungarian": "hu", "magyar": "hu",
    "romanian": "ro", "romana": "ro", "română": "ro",
}


def normalize_language_code(value: str) -> str:
    """Lower-cased language tag for KV keys and responses.

    ``"EN"`` -> ``"en"``, ``"en_GB"`` -> ``"en-gb"``, ``"Türkçe"`` -> ``"tr"``.
    Blank input falls back to ``DEFAULT_LANGUAGE``.
    """
    raw = str(value or "").strip().strip("'\"").strip()
    if not raw:
        return DEFAULT_LANGUAGE

    lowered = raw.lower()
    if lowered in LANGUAGE_ALIASES:
        return LANGUAGE_ALIASES[lowered]

    return lowered.replace("_", "-")
