import logging
import re
from typing import FrozenSet, Iterable, List, Optional, Tuple

from userjs_tools.models.schemas import ReconciliationResult

logger = logging.getLogger(__name__)

# user_pref("key", ...), pref('key', ...), lockPref("key", ...), ...
PREF_STATEMENT = (
    r"[A-Za-z_]*[Pp][Rr][Ee][Ff][ \t]*\([ \t]*"
    r"(?P<quote>[\"'])(?P<key>[^\"']+)(?P=quote)[ \t]*,"
)

# Only \n ends a line; \r stays with it and other separators stay inside values
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


def split_lines(text: str) -> List[str]:
    """Lines of ``text`` with their terminators, split on ``\\n`` only."""
    return _LINE_RE.findall(text)


class KeyExtractor:
    """Finds the preference key declared by ``*pref("key", value);`` lines."""

    LINE_RE = re.compile(r"^\s*" + PREF_STATEMENT)
    SEARCH_RE = re.compile(PREF_STATEMENT)

    def match_line(self, line: str) -> Optional[str]:
        """Key declared by a statement at the start of ``line``, if any."""
        m = self.LINE_RE.match(line)
        return m.group("key") if m else None

    def extract_keys(self, text: str) -> FrozenSet[str]:
        """Every distinct key declared anywhere in ``text``.

        Declarations that are commented out still count.
        """
        keys = set()
        for line in split_lines(text):
            for m in self.SEARCH_RE.finditer(line):
                keys.add(m.group("key"))
        return frozenset(keys)


class PrefReconciler:
    def __init__(self, extractor: Optional[KeyExtractor] = None):
        self.extractor = extractor or KeyExtractor()

    def reconcile(self, keys: Iterable[str], compiled_text: str) -> ReconciliationResult:
        """Split ``compiled_text`` into lines to keep and lines redeclaring ``keys``.

        Line order is preserved in both halves; every declaration of a key
        is removed, duplicates included.
        """
        keys = frozenset(keys)
        result = ReconciliationResult()
        if not keys:
            result.kept_lines = split_lines(compiled_text)
            return result

        for line in split_lines(compiled_text):
            key = self.extractor.match_line(line)
            if key is not None and key in keys:
                result.removed_lines.append(line)
            else:
                result.kept_lines.append(line)

        logger.debug(
            f"Reconciled {len(keys)} keys: "
            f"{len(result.kept_lines)} lines kept, {result.removed_count} removed"
        )
        return result

    def reconcile_overrides(self, override_text: str, compiled_text: str) -> ReconciliationResult:
        """Reconcile ``compiled_text`` against the keys declared in ``override_text``."""
        return self.reconcile(self.extractor.extract_keys(override_text), compiled_text)


def reconcile_texts(override_text: str, compiled_text: str) -> Tuple[str, int]:
    """Drop from ``compiled_text`` the preferences declared in ``override_text``.

    Returns the text to keep and the number of removed lines.
    """
    result = PrefReconciler().reconcile_overrides(override_text, compiled_text)
    return result.kept_text, result.removed_count
