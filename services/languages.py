"""Supported response languages and lookup helpers."""

from __future__ import annotations

from typing import Dict, List, Tuple

# code -> (English name, native name, speech locale)
LANGUAGES: Dict[str, Tuple[str, str, str]] = {
    "en": ("English", "English", "en-US"),
    "hi": ("Hindi", "हिन्दी", "hi-IN"),
    "te": ("Telugu", "తెలుగు", "te-IN"),
    "kn": ("Kannada", "ಕನ್ನಡ", "kn-IN"),
    "ta": ("Tamil", "தமிழ்", "ta-IN"),
    "bn": ("Bengali", "বাংলা", "bn-IN"),
    "es": ("Spanish", "Español", "es-ES"),
    "fr": ("French", "Français", "fr-FR"),
    "pt": ("Portuguese", "Português", "pt-BR"),
}

DEFAULT_LANGUAGE = "en"


def resolve_code(language: str | None) -> str:
    """Map a code or English language name to a supported code."""
    if not language:
        return DEFAULT_LANGUAGE
    value = language.strip()
    if value.lower() in LANGUAGES:
        return value.lower()
    for code, (name, native, _) in LANGUAGES.items():
        if value.lower() == name.lower() or value == native:
            return code
    return DEFAULT_LANGUAGE


def language_name(language: str | None) -> str:
    """Return the English name for a code or name, defaulting to English."""
    return LANGUAGES[resolve_code(language)][0]


def display_name(language: str | None) -> str:
    """Return e.g. `Hindi (हिन्दी)`; English is returned bare."""
    code = resolve_code(language)
    name, native, _ = LANGUAGES[code]
    return name if name == native else f"{name} ({native})"


def list_languages() -> List[Dict[str, str]]:
    return [
        {"code": code, "name": name, "native": native, "locale": locale}
        for code, (name, native, locale) in LANGUAGES.items()
    ]
