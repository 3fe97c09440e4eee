"""测试 Post-processor：条目规范化、旁白展开、长度限制"""
import pytest

from surtitle.pipeline.processors.postprocess import (
    enforce_line_lengths,
    expand_inline_asides,
    normalize_entry,
    normalize_lines,
    strip_stray_fragments,
)
from surtitle.schema.script_model import LineType, SubtitleLine


def test_normalize_entry_accepts_aliases_and_classifies_missing_type():
    assert normalize_entry({"line": "你好", "kind": "DIRECTION"}) == SubtitleLine("你好", LineType.DIRECTION)
    assert normalize_entry({"text": "（燈暗）", "type": "unknown"}).type == LineType.DIRECTION
    assert normalize_entry("我愛你。").type == LineType.DIALOGUE
    assert normalize_entry(42) is None
    assert normalize_entry("   ") is None
    assert normalize_entry("   ", keep_empty=True) == SubtitleLine("", LineType.DIALOGUE)


def test_inline_aside_becomes_its_own_line():
    lines = expand_inline_asides(SubtitleLine("我等你（燈光漸暗）好久了", LineType.DIALOGUE))
    assert lines == [
        SubtitleLine("我等你", LineType.DIALOGUE),
        SubtitleLine("（燈光漸暗）", LineType.DIRECTION),
        SubtitleLine("好久了", LineType.DIALOGUE),
    ]


def test_direction_lines_are_not_expanded():
    line = SubtitleLine("燈光（漸暗）", LineType.DIRECTION)
    assert expand_inline_asides(line) == [line]


def test_stray_fragments_are_trimmed():
    assert strip_stray_fragments("」你好「") == "你好"


def test_punctuation_only_lines_are_dropped_unless_kept():
    assert normalize_lines(["……", "你好"]) == [SubtitleLine("你好", LineType.DIALOGUE)]
    kept = normalize_lines(["……", "", "你好"], keep_empty=True)
    assert [line.text for line in kept] == ["……", "", "你好"]


def test_normalize_lines_rejects_non_sequences():
    assert normalize_lines("你好") == []
    assert normalize_lines(None) == []
    assert normalize_lines({"text": "你好"}) == []


def test_long_dialogue_breaks_on_whitespace():
    text = "一二三四五六七八九十 甲乙丙丁戊己庚辛壬癸子丑"
    result = enforce_line_lengths([SubtitleLine(text)], 20)
    assert [line.text for line in result] == ["一二三四五六七八九十", "甲乙丙丁戊己庚辛壬癸子丑"]


def test_long_dialogue_breaks_on_soft_punctuation_near_limit():
    text = "一二三四五六七八九十一二三四五六七，八九十一二三"
    result = enforce_line_lengths([SubtitleLine(text)], 20)
    assert [line.text for line in result] == ["一二三四五六七八九十一二三四五六七，", "八九十一二三"]


def test_long_dialogue_without_break_points_is_hard_cut():
    result = enforce_line_lengths([SubtitleLine("一" * 45)], 20)
    assert [len(line.text) for line in result] == [20, 20, 5]
    assert all(line.type == LineType.DIALOGUE for line in result)


def test_directions_are_exempt_and_empty_lines_dropped():
    direction = SubtitleLine("（" + "燈光緩緩暗下，眾人" * 5 + "）", LineType.DIRECTION)
    result = enforce_line_lengths([direction, SubtitleLine("")], 20)
    assert result == [direction]


def test_every_dialogue_piece_fits_the_limit():
    texts = ["王子 我回來了 你還記得我嗎 那天晚上 我們在河邊說過的話", "啊" * 33, "好，好，好，好，好，好，好，好，好，好，好，好"]
    for piece in enforce_line_lengths([SubtitleLine(t) for t in texts], 12):
        assert 0 < len(piece.text) <= 12


def test_non_positive_line_limit_is_rejected():
    with pytest.raises(ValueError):
        enforce_line_lengths([SubtitleLine("你好")], 0)


def test_split_pieces_rejoin_to_the_original_line():
    text = "一二三四五六七八九十甲乙丙丁戊己庚辛壬癸子丑寅卯辰巳午未申酉"
    result = enforce_line_lengths([SubtitleLine(text)], 20)
    assert len(result) == 2
    assert "".join(line.text for line in result) == text
