"""
Translator Interface

Human-readable protocol text (error messages, service names) is localized
by an external collaborator keyed by the requester's declared language.
"""

from abc import ABC, abstractmethod


class ITranslator(ABC):
    """Contract for localizing protocol text."""

    @abstractmethod
    def translate(self, lang: str, text: str) -> str:
        """
        Translate ``text`` into ``lang``.

        Implementations must fall back to returning ``text`` unchanged when
        no translation exists for the language.
        """
        pass  # pragma: no cover
