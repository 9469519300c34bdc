"""
Quick-reply reconciliation — picks the next turn's suggestion list.

Precedence, first match wins:
1. explicit server list (quick_replies), verbatim
2. labels of up to MAX_DERIVED purchase options
3. localized default examples
"""

from typing import Optional

from baza_chat.i18n import quick_examples
from baza_chat.models.chat import ChatResponse

MAX_DERIVED = 4


def defaults(language: str) -> list[str]:
    return quick_examples(language)


def reconcile(response: Optional[ChatResponse], language: str) -> list[str]:
    if response is None:
        return defaults(language)
    if response.quick_replies:
        return list(response.quick_replies)
    if response.options:
        return [opt.label(i) for i, opt in enumerate(response.options[:MAX_DERIVED])]
    return defaults(language)
