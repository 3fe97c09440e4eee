"""测试 Decoder：BOM 识别、打分选择、永不失败"""
import codecs
import math

import pytest

from surtitle.pipeline.processors.decode import (
    UTF16BE,
    UTF16LE,
    UTF32BE,
    UTF32LE,
    UTF8,
    PREFER_STRICT_UTF8,
    TextStats,
    candidate_encodings,
    decode_script_bytes,
    detect_bom,
    score_text,
)


def test_empty_input_decodes_to_empty_string():
    assert decode_script_bytes(b"") == ""


def test_utf8_bom_is_stripped():
    data = codecs.BOM_UTF8 + "王子：我回來了。".encode("utf-8")
    assert decode_script_bytes(data) == "王子：我回來了。"


def test_utf16_bom_selects_matching_endianness():
    text = "（燈光漸暗）舞台上只剩一盞燈。"
    assert decode_script_bytes(codecs.BOM_UTF16_LE + text.encode("utf-16-le")) == text
    assert decode_script_bytes(codecs.BOM_UTF16_BE + text.encode("utf-16-be")) == text


def test_plain_utf8_without_bom():
    text = "公主：你終於回來了。\nPrince: I'm back."
    assert decode_script_bytes(text.encode("utf-8")) == text


def test_gb18030_script_is_recovered_by_scoring():
    text = "舞台灯光渐暗，两人相望无言。"
    assert decode_script_bytes(text.encode("gb18030")) == text


def test_arbitrary_bytes_never_raise():
    result = decode_script_bytes(bytes(range(256)))
    assert isinstance(result, str)
    assert result


def test_detect_bom_prefers_utf32_over_utf16():
    assert detect_bom(codecs.BOM_UTF32_LE + b"a\x00\x00\x00") == UTF32LE
    assert detect_bom(codecs.BOM_UTF16_LE + b"a\x00") == UTF16LE
    assert detect_bom(codecs.BOM_UTF8 + b"a") == UTF8
    assert detect_bom(b"plain") is None


def test_candidate_encodings_put_bom_first_without_duplicates():
    order = candidate_encodings(codecs.BOM_UTF16_BE + "甲".encode("utf-16-be"))
    assert order[0] == UTF16BE
    assert len(order) == len(set(order))
    assert "gb18030" in order and "big5" in order


def test_score_rewards_han_and_penalizes_replacement():
    assert math.isinf(score_text(TextStats(), UTF8))
    clean = score_text(TextStats(han=4, length=4), "gb18030")
    broken = score_text(TextStats(han=4, replacement=1, length=5), "gb18030")
    assert clean == 24
    assert broken < clean
    assert score_text(TextStats(han=4, length=4), UTF8) == clean + 5


@pytest.mark.parametrize(
    "bom, encoding",
    [
        (codecs.BOM_UTF8, "utf-8"),
        (codecs.BOM_UTF16_LE, "utf-16-le"),
        (codecs.BOM_UTF16_BE, "utf-16-be"),
        (codecs.BOM_UTF32_LE, "utf-32-le"),
        (codecs.BOM_UTF32_BE, "utf-32-be"),
    ],
)
def test_every_bom_round_trips(bom, encoding):
    text = "王子：我回來了。\n（燈光漸暗）Curtain."
    assert decode_script_bytes(bom + text.encode(encoding)) == text


def test_utf32_bom_variants_are_detected():
    assert detect_bom(codecs.BOM_UTF32_BE + "甲".encode("utf-32-be")) == UTF32BE
    assert detect_bom(codecs.BOM_UTF32_LE + "甲".encode("utf-32-le")) == UTF32LE


def test_strict_utf8_shortcut_is_on_and_can_be_disabled():
    assert PREFER_STRICT_UTF8 is True
    text = "Prince: I'm back."
    assert decode_script_bytes(text.encode("utf-8"), prefer_strict_utf8=False) == text
    gb = "舞台灯光渐暗".encode("gb18030")
    assert decode_script_bytes(gb, prefer_strict_utf8=False) == "舞台灯光渐暗"
