"""
Localized strings shown by the delivery pipeline (English + Kinyarwanda).
"""

DEFAULT_LANGUAGE = "en"

TRANSLATIONS: dict[str, dict[str, object]] = {
    "en": {
        "quick_examples": ["Show bundles", "My balance", "Buy 1GB", "Help"],
        "offline": "Offline",
        "bot_typing": "Bot is typing…",
        "retry_text": "Retry",
        "buy_success": "Purchase successful",
        "buy_failed": "Purchase failed",
        "purchase_prefix": "Purchase",
    },
    "kin": {
        "quick_examples": ["Erekana bundles", "Balance yanjye", "Gura 1GB", "Ubufasha"],
        "offline": "Ntabwo kuri murandasi",
        "bot_typing": "Bot irimo kwandika…",
        "retry_text": "Gerageza",
        "buy_success": "Kugura byagenze neza",
        "buy_failed": "Kunanirwa kugura",
        "purchase_prefix": "Gura",
    },
}


def _table(language: str) -> dict[str, object]:
    return TRANSLATIONS.get(language) or TRANSLATIONS[DEFAULT_LANGUAGE]


def translate(language: str, key: str) -> str:
    value = _table(language).get(key)
    if value is None:
        value = TRANSLATIONS[DEFAULT_LANGUAGE][key]
    return str(value)


def quick_examples(language: str) -> list[str]:
    return list(_table(language)["quick_examples"])  # type: ignore[arg-type]


def offline_notice(language: str) -> str:
    return f"⚠️ {translate(language, 'offline')}. {translate(language, 'bot_typing')}"


def retry_prompt(language: str) -> str:
    return f"⚠️ {translate(language, 'bot_typing')} {translate(language, 'retry_text')}"


def purchase_failed(language: str) -> str:
    return f"⚠️ {translate(language, 'buy_failed')}. {translate(language, 'retry_text')}"
