"""
Unit tests for songlist.convert
"""
import json

from openpyxl import Workbook

from songlist.convert import convert_file, convert_rows, main, read_sheet, row_to_record, summarize


def write_workbook(path, rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    wb.save(path)
    return str(path)


class TestRowToRecord:

    def test_chinese_headers(self):
        rec = row_to_record({"歌曲名": "稻香", "歌手": "周杰伦", "语种": "国语", "种类": "流行", "特殊歌曲": "是"})
        assert rec == {
            "songName": "稻香", "singer": "周杰伦", "language": "国语",
            "category": "流行", "special": True, "firstLetter": "D",
        }

    def test_english_headers_and_defaults(self):
        rec = row_to_record({"songName": "Lemon", "singer": "米津玄師"})
        assert rec["language"] == "未知"
        assert rec["category"] == "其他"
        assert rec["special"] is False
        assert rec["firstLetter"] == "L"

    def test_hint_column(self):
        rec = row_to_record({"歌名": "誰か", "首字母": "z"})
        assert rec["firstLetter"] == "Z"

    def test_clip_url_only_when_present(self):
        assert "bilibiliClipUrl" not in row_to_record({"songName": "A"})
        rec = row_to_record({"songName": "A", "bilibiliClipUrl": "https://b23.tv/x"})
        assert rec["bilibiliClipUrl"] == "https://b23.tv/x"

    def test_missing_title(self):
        assert row_to_record({"歌手": "someone"}) is None


class TestConvert:

    def test_rows_without_title_are_skipped(self):
        records = convert_rows([{"songName": "A"}, {"songName": ""}, {"songName": "B"}])
        assert [r["songName"] for r in records] == ["A", "B"]

    def test_convert_file(self, tmp_path):
        src = tmp_path / "songs.csv"
        # spreadsheet exports usually carry a BOM
        src.write_text("\ufeff歌曲名,歌手,语种,种类,特殊歌曲\n晴天,周杰伦,国语,流行,否\n1999,Prince,英语,放克,是\n",
                       encoding="utf-8")
        records = convert_file(str(src))
        written = json.loads((tmp_path / "songs.json").read_text(encoding="utf-8"))
        assert written == records
        assert [r["firstLetter"] for r in records] == ["Q", "#"]
        assert records[1]["special"] is True

    def test_main_missing_input(self, tmp_path):
        assert main([str(tmp_path / "nope.csv")]) == 1

    def test_main_explicit_output(self, tmp_path):
        src = tmp_path / "in.csv"
        src.write_text("songName,singer\nApple,Nobody\n", encoding="utf-8")
        out = tmp_path / "out.json"
        assert main([str(src), str(out)]) == 0
        assert json.loads(out.read_text(encoding="utf-8"))[0]["songName"] == "Apple"

    def test_main_unsupported_type(self, tmp_path):
        src = tmp_path / "songs.txt"
        src.write_text("songName\nApple\n", encoding="utf-8")
        assert main([str(src)]) == 1


class TestWorkbook:
    """Tests for reading .xlsx sheets"""

    def test_numeric_and_empty_cells(self, tmp_path):
        src = write_workbook(tmp_path / "songs.xlsx", [
            ["歌曲名", "歌手", "语种", "种类", "特殊歌曲"],
            ["稻香", "周杰伦", "国语", "流行", "是"],
            [1989, "Taylor Swift", "英语", None, "否"],
            ["Lemon", 5566, None, "J-Pop", None],
            [None, "nobody", "国语", "流行", None],
        ])
        rows = read_sheet(src)
        assert len(rows) == 4
        assert rows[3]["歌曲名"] is None

        records = convert_file(src)
        assert [r["songName"] for r in records] == ["稻香", "1989", "Lemon"]
        assert [r["firstLetter"] for r in records] == ["D", "#", "L"]
        assert records[1]["category"] == "其他"
        assert records[2]["singer"] == "5566"
        assert records[2]["language"] == "未知"
        assert records[0]["special"] is True
        written = json.loads((tmp_path / "songs.json").read_text(encoding="utf-8"))
        assert written == records

    def test_main_with_workbook(self, tmp_path):
        src = write_workbook(tmp_path / "in.xlsx", [["songName", "singer"], ["Apple", "Nobody"]])
        out = tmp_path / "out.json"
        assert main([src, str(out)]) == 0
        assert json.loads(out.read_text(encoding="utf-8"))[0]["firstLetter"] == "A"


class TestSummary:

    def test_counts(self):
        records = convert_rows([
            {"songName": "A", "language": "国语", "special": "是"},
            {"songName": "B", "language": "国语"},
            {"songName": "C", "language": "英语", "special": "true"},
        ])
        assert summarize(records) == {"total": 3, "languages": {"国语": 2, "英语": 1}, "featured": 2}

    def test_empty(self):
        assert summarize([]) == {"total": 0, "languages": {}, "featured": 0}
