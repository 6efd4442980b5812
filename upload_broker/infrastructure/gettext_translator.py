"""gettext-backed translator for protocol text."""

import gettext
import re
from threading import Lock
from typing import Dict, Optional

from upload_broker.domain.protocol.translator import ITranslator

TRANSLATION_DOMAIN = "upload_broker"

# BCP 47 shaped tags only; anything else never reaches the filesystem
_LANGUAGE_TAG = re.compile(r"^[A-Za-z]{1,8}(?:[-_][A-Za-z0-9]{1,8})*$")


class GettextTranslator(ITranslator):
    """
    Translates text using compiled catalogs under ``localedir``.

    Language tags are mapped to gettext locale names (``pt-BR`` -> ``pt_BR``)
    and fall back to their primary subtag (``de-AT`` -> ``de``). Catalogs
    are cached per catalog file, so the cache never outgrows the locale
    directory whatever tags clients send; missing catalogs fall back to the
    untranslated text.
    """

    def __init__(self, localedir: Optional[str] = None, domain: str = TRANSLATION_DOMAIN):
        self.localedir = localedir
        self.domain = domain
        self._catalogs: Dict[str, gettext.GNUTranslations] = {}
        self._lock = Lock()

    def translate(self, lang: str, text: str) -> str:
        if not lang or not text or self.localedir is None:
            return text
        catalog = self._catalog(lang)
        return text if catalog is None else catalog.gettext(text)

    def _catalog(self, lang: str) -> Optional[gettext.GNUTranslations]:
        if not _LANGUAGE_TAG.match(lang):
            return None
        locale = lang.replace("-", "_")
        primary = locale.split("_", 1)[0]
        path = gettext.find(self.domain, self.localedir, languages=[locale, primary])
        if path is None:
            return None

        with self._lock:
            catalog = self._catalogs.get(path)
            if catalog is None:
                with open(path, "rb") as fp:
                    catalog = gettext.GNUTranslations(fp)
                self._catalogs[path] = catalog
            return catalog
