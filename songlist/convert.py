"""
Convert a song spreadsheet (.xlsx workbook or .csv) into a playlist JSON file
that the admin import accepts.

    python -m songlist.convert playlist.xlsx [playlist.json]

The first row of the first sheet is the header. Recognised columns (first
match wins): title 歌曲名/歌名/songName, artist 歌手/singer, language
语种/语言/language, genre 种类/分类/category, featured 特殊歌曲/special, plus
the optional 首字母/firstLetter and bilibiliClipUrl.
"""
import argparse
import json
import logging
import os
import sys
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

import songlist.config  # noqa: F401  (logging setup)
from songlist.transliterate import derive_sort_key, normalize_hint

logger = logging.getLogger(__name__)

TITLE_COLUMNS = ("歌曲名", "歌名", "songName")
ARTIST_COLUMNS = ("歌手", "singer")
LANGUAGE_COLUMNS = ("语种", "语言", "language")
GENRE_COLUMNS = ("种类", "分类", "category")
FEATURED_COLUMNS = ("特殊歌曲", "special")
HINT_COLUMNS = ("首字母", "firstLetter")
CLIP_COLUMNS = ("bilibiliClipUrl",)

DEFAULT_LANGUAGE = "未知"
DEFAULT_GENRE = "其他"
TRUTHY = {"是", "true", "yes", "1", "y"}

WORKBOOK_SUFFIXES = (".xlsx", ".xlsm")
CSV_SUFFIXES = (".csv",)


def _cell_text(v: Any) -> str:
    if v is None:
        return ""
    # whole numbers typed into a sheet come back as floats: 1989.0
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    return str(v).strip()


def _pick(row: Dict[str, Any], columns: Iterable[str]) -> str:
    for c in columns:
        v = _cell_text(row.get(c))
        if v:
            return v
    return ""


def row_to_record(row: Dict[str, Any]) -> Optional[dict]:
    title = _pick(row, TITLE_COLUMNS)
    if not title:
        return None
    hint = normalize_hint(_pick(row, HINT_COLUMNS))
    rec = {
        "songName": title,
        "singer": _pick(row, ARTIST_COLUMNS),
        "language": _pick(row, LANGUAGE_COLUMNS) or DEFAULT_LANGUAGE,
        "category": _pick(row, GENRE_COLUMNS) or DEFAULT_GENRE,
        "special": _pick(row, FEATURED_COLUMNS).lower() in TRUTHY,
        "firstLetter": derive_sort_key(title, hint),
    }
    clip = _pick(row, CLIP_COLUMNS)
    if clip:
        rec["bilibiliClipUrl"] = clip
    return rec


def convert_rows(rows: Iterable[Dict[str, Any]]) -> List[dict]:
    records = []
    for i, row in enumerate(rows, start=2):   # line 1 is the header
        rec = row_to_record(row)
        if rec is None:
            logger.warning("Line %d has no title, skipped", i)
            continue
        records.append(rec)
    return records


def read_sheet(src: str) -> List[Dict[str, Any]]:
    """Load the first sheet of a workbook, or a CSV file, as one dict per row."""
    suffix = os.path.splitext(src)[1].lower()
    if suffix in WORKBOOK_SUFFIXES:
        df = pd.read_excel(src, sheet_name=0, engine="openpyxl", dtype=object)
    elif suffix in CSV_SUFFIXES:
        # utf-8-sig strips the BOM spreadsheet programs like to write
        df = pd.read_csv(src, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    else:
        raise ValueError(f"unsupported sheet type {suffix or '(none)'}, expected .xlsx or .csv")
    df = df.astype(object).where(pd.notna(df), None)
    logger.info("Read %d rows from %s", len(df), src)
    return df.to_dict(orient="records")


def summarize(records: List[dict]) -> dict:
    return {
        "total": len(records),
        "languages": dict(Counter(r["language"] for r in records)),
        "featured": sum(1 for r in records if r["special"]),
    }


def convert_file(src: str, dst: Optional[str] = None) -> List[dict]:
    records = convert_rows(read_sheet(src))
    dst = dst or os.path.splitext(src)[0] + ".json"
    with open(dst, "w", encoding="utf-8") as f:
        json.dump(records, f, ensure_ascii=False, indent=2)
    logger.info("Wrote %d songs to %s", len(records), dst)

    stats = summarize(records)
    logger.info("Songs: %d, featured: %d", stats["total"], stats["featured"])
    for language, count in sorted(stats["languages"].items(), key=lambda kv: -kv[1]):
        logger.info("  %s: %d", language, count)
    return records


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Convert an .xlsx or .csv song sheet to playlist JSON")
    parser.add_argument("input", help=".xlsx workbook or .csv file, header row first")
    parser.add_argument("output", nargs="?", help="JSON file (default: input name with .json)")
    args = parser.parse_args(argv)

    if not os.path.exists(args.input):
        logger.error("Input file not found: %s", args.input)
        return 1
    try:
        convert_file(args.input, args.output)
    except ValueError as e:
        logger.error("Conversion failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
