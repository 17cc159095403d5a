import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple
from sqlalchemy import case, func, or_
from sqlmodel import Session, select

from songlist.config import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from songlist.models import Song
from songlist.transliterate import UNSORTED


@dataclass(frozen=True)
class Predicate:
    """One filter condition. Several fields are OR-ed together; predicates are AND-ed."""
    fields: Tuple[str, ...]
    op: str          # "eq" | "icontains"
    value: Any

    def to_clause(self):
        clauses = []
        for name in self.fields:
            column = getattr(Song, name)
            if self.op == "eq":
                clauses.append(column == self.value)
            elif self.op == "icontains":
                clauses.append(column.icontains(self.value, autoescape=True))
            else:
                raise ValueError(f"unsupported operator: {self.op}")
        return clauses[0] if len(clauses) == 1 else or_(*clauses)


@dataclass
class PlaylistQuery:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort_key: Optional[str] = None
    language: Optional[str] = None
    featured: Optional[bool] = None
    search: str = ""

    def predicates(self) -> List[Predicate]:
        preds: List[Predicate] = []
        if self.sort_key:
            preds.append(Predicate(("sort_key",), "eq", self.sort_key))
        if self.language:
            preds.append(Predicate(("language",), "eq", self.language))
        if self.featured is not None:
            preds.append(Predicate(("is_featured",), "eq", self.featured))
        if self.search:
            preds.append(Predicate(("title", "artist"), "icontains", self.search))
        return preds


@dataclass
class PlaylistPage:
    items: List[Song] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)


def _positive_int(value: Any, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def parse_featured(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def build_query(page=None, limit=None, first_letter=None, language=None, special=None, search=None) -> PlaylistQuery:
    """Normalize raw (query-string) input; malformed paging falls back to the defaults."""
    return PlaylistQuery(
        page=_positive_int(page, DEFAULT_PAGE),
        page_size=_positive_int(limit, DEFAULT_PAGE_SIZE),
        sort_key=(first_letter or "").strip().upper() or None,
        language=language or None,
        featured=parse_featured(special),
        search=(search or "").strip(),
    )


def playlist_order() -> Sequence:
    # "#" after "Z", then binary title order
    return (case((Song.sort_key == UNSORTED, 1), else_=0), Song.sort_key, Song.title, Song.id)


def run_query(session: Session, q: PlaylistQuery) -> PlaylistPage:
    clauses = [p.to_clause() for p in q.predicates()]

    total = session.exec(select(func.count()).select_from(Song).where(*clauses)).one()
    items = session.exec(
        select(Song).where(*clauses)
        .order_by(*playlist_order())
        .offset((q.page - 1) * q.page_size)
        .limit(q.page_size)
    ).all()
    return PlaylistPage(items=list(items), total=total, page=q.page, page_size=q.page_size)


def _distinct(session: Session, column) -> List[str]:
    return list(session.exec(select(column).distinct().order_by(column)).all())


def distinct_languages(session: Session) -> List[str]:
    return _distinct(session, Song.language)


def distinct_categories(session: Session) -> List[str]:
    return _distinct(session, Song.genre)


def distinct_sort_keys(session: Session) -> List[str]:
    keys = _distinct(session, Song.sort_key)
    return sorted(keys, key=lambda k: (k == UNSORTED, k))


def facets(session: Session) -> dict:
    return {
        "languages": distinct_languages(session),
        "categories": distinct_categories(session),
        "firstLetters": distinct_sort_keys(session),
    }
