import re
import unicodedata
from unidecode import unidecode

UNSORTED = "#"
SORT_KEYS = tuple("ABCDEFGHIJKLMNOPQRSTUVWXYZ") + (UNSORTED,)

# opening delimiters skipped before the first significant character
OPENING_PUNCT = "《〈【〔〖「『（(［[｛{＜<\"'“‘«‹"

_HINT_RE = re.compile(r"[A-Za-z#]")


def normalize_hint(hint: str | None) -> str | None:
    if not isinstance(hint, str):
        return None
    hint = hint.strip()
    if _HINT_RE.fullmatch(hint):
        return hint.upper()
    return None


def _phonetic_initial(ch: str) -> str | None:
    # Han -> pinyin, kana -> romaji, hangul -> RR, accented latin -> plain:
    # "稻" -> "Dao", "さ" -> "sa", "사" -> "sa", "É" -> "E"
    spelled = unidecode(ch).strip()
    if spelled[:1].isascii() and spelled[:1].isalpha():
        return spelled[0].upper()
    return None


def derive_sort_key(title: str | None, hint: str | None = None) -> str:
    """
    Map a song title to its alphabetical bucket, "A".."Z" or "#".

    An explicit one-letter hint wins over everything else. Otherwise leading
    opening brackets/quotes are skipped and the first remaining character
    decides: latin letters map to themselves, digits to "#", and other scripts
    to the first letter of their phonetic transliteration. Anything unmapped
    lands in "#". Never raises.
    """
    explicit = normalize_hint(hint)
    if explicit:
        return explicit

    text = (title or "").lstrip()
    while text and (text[0] in OPENING_PUNCT or text[0].isspace()):
        text = text[1:]
    if not text:
        return UNSORTED

    # fullwidth forms fold onto ascii: "Ａ" -> "A", "１" -> "1"
    ch = unicodedata.normalize("NFKC", text[0])[:1] or text[0]
    if ch.isascii():
        if ch.isalpha():
            return ch.upper()
        return UNSORTED
    return _phonetic_initial(ch) or UNSORTED
