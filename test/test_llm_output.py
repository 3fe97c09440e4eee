"""测试服务输出的分阶段解析与校验"""
import json

import pytest

from surtitle.errors import EmptyOutput, InvalidOutput, ParseFailure, PlaceholderOutput
from surtitle.pipeline.processors.llm_output import (
    has_meaningful_overlap,
    is_placeholder,
    parse_model_output,
    validate_model_lines,
)
from surtitle.schema.script_model import LineType

SOURCE = "王子：我回來了。\n（燈光漸暗）\n公主：你終於回來了。"


def test_direct_json_array():
    raw = json.dumps([{"type": "dialogue", "text": "王子：我回來了。"}], ensure_ascii=False)
    parsed, stage = parse_model_output(raw)
    assert stage == "direct"
    assert parsed[0]["text"] == "王子：我回來了。"


def test_code_fence_is_stripped():
    parsed, stage = parse_model_output('```json\n[{"text": "你好"}]\n```')
    assert stage == "direct"
    assert parsed == [{"text": "你好"}]


def test_array_surrounded_by_prose_is_salvaged():
    parsed, stage = parse_model_output('Here you go: [{"text": "你好"}] hope it helps')
    assert stage == "bracket_salvage"
    assert parsed == [{"text": "你好"}]


def test_truncated_array_keeps_complete_objects():
    parsed, stage = parse_model_output('[{"text": "甲"}, {"text": "乙"}, {"text": "丙')
    assert stage == "bracket_salvage"
    assert [item["text"] for item in parsed] == ["甲", "乙"]


def test_loose_objects_are_rebuilt_into_array():
    parsed, stage = parse_model_output('{"text": "甲"} and then {"text": "乙"}')
    assert stage == "object_scan"
    assert len(parsed) == 2


def test_unparseable_output_raises_parse_failure():
    with pytest.raises(ParseFailure) as exc_info:
        parse_model_output("Sorry, I cannot help with that.")
    assert exc_info.value.code == "INVALID_JSON"

    with pytest.raises(ParseFailure):
        parse_model_output(None)


def test_grounded_lines_are_accepted():
    parsed = [
        {"type": "dialogue", "text": "王子：我回來了。"},
        {"type": "direction", "text": "（燈光漸暗）"},
        {"text": "公主：你終於回來了。"},
    ]
    lines = validate_model_lines(parsed, SOURCE)
    assert [line.type for line in lines] == [LineType.DIALOGUE, LineType.DIRECTION, LineType.DIALOGUE]


def test_invented_text_is_rejected():
    with pytest.raises(InvalidOutput) as exc_info:
        validate_model_lines([{"text": "今天天氣很好我們去公園散步"}], SOURCE)
    assert exc_info.value.code == "INVALID_LLM_OUTPUT"
    assert exc_info.value.details == ["今天天氣很好我們去公園散步"]


def test_ordinal_placeholders_are_rejected():
    with pytest.raises(PlaceholderOutput):
        validate_model_lines([{"text": "第一句"}, {"text": "第二句"}], SOURCE)
    assert is_placeholder("第三句。")
    assert not is_placeholder("王子：我回來了。")


def test_empty_output_is_rejected():
    with pytest.raises(EmptyOutput):
        validate_model_lines([], SOURCE)
    with pytest.raises(EmptyOutput):
        validate_model_lines([{"text": "……"}, {"text": "  "}], SOURCE)


def test_overlap_requires_snippet_in_source():
    source = "王子我回來了公主你終於回來了"
    assert has_meaningful_overlap("我回來了啦啦啦", source)
    assert has_meaningful_overlap("王子", source)
    assert not has_meaningful_overlap("你好", source)
    assert not has_meaningful_overlap("", source)
