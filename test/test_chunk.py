"""测试 Chunker：长度上限、顺序、覆盖"""
import re

import pytest

from surtitle.pipeline.processors.chunk import chunk_script, split_sentences


def _squash(text: str) -> str:
    return re.sub(r"\s+", "", text)


def test_blank_text_yields_no_chunks():
    assert chunk_script("") == []
    assert chunk_script("  \n\n \r\n") == []


def test_non_positive_limit_is_rejected():
    with pytest.raises(ValueError):
        chunk_script("甲。", 0)


def test_short_script_stays_in_one_chunk_joined_by_newlines():
    text = "第一句。第二句！\n\n第三句？"
    assert chunk_script(text) == ["第一句。\n第二句！\n第三句？"]


def test_chunks_respect_limit_and_preserve_order():
    text = "甲乙丙。丁戊己。\n庚辛壬。癸子丑。"
    chunks = chunk_script(text, 8)
    assert chunks == ["甲乙丙。", "丁戊己。", "庚辛壬。", "癸子丑。"]
    assert all(len(c) <= 8 for c in chunks)


def test_oversized_sentence_is_hard_sliced():
    chunks = chunk_script("前言。\n" + "一" * 25, 10)
    assert chunks == ["前言。", "一" * 10, "一" * 10, "一" * 5]


def test_chunks_cover_all_non_whitespace_content():
    text = "王子：我回來了。公主：你終於回來了！\n（燈光漸暗）\n\n兩人相望，久久無言。" * 20
    chunks = chunk_script(text, 50)
    assert all(len(c) <= 50 for c in chunks)
    assert _squash("".join(chunks)) == _squash(text)


def test_split_sentences_keeps_terminal_punctuation():
    assert split_sentences("你好。再見！") == ["你好。", "再見！"]
    assert split_sentences("沒有標點") == ["沒有標點"]
