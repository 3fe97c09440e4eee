"""
文本工具（纯函数）

- strip_bom / sanitize_line_text: 单行字幕的清洗（去 BOM、换行、控制字符）
- strip_punct: 去除所有标点、符号与空白，只保留字母/数字/汉字
- normalize_for_comparison: 溯源比对用的归一化
- soften_punctuation: 上传时把常见断句标点替换为空格
"""
import re
import unicodedata

_NEWLINE_RE = re.compile(r"\r?\n|[\r\u2028\u2029]")
_SOFTEN_RE = re.compile(r"[.,，。、]")
_COMPARISON_STRIP_RE = re.compile(
    r"[\s　，,。．.、！!？?\-—:：;；\"“”‘’'（）()《》〈〉【】\[\]{}<>「」『』·•…~‐﹣﹘﹖﹗﹔﹕]"
)


def strip_bom(text: str) -> str:
    """去除开头的 BOM（U+FEFF）。"""
    if not text:
        return ""
    return text[1:] if text[0] == "\ufeff" else text


def sanitize_line_text(text) -> str:
    """
    清洗单行字幕文本：去 BOM、换行转空格、去除其余控制字符、首尾 trim。

    None 视为空字符串，其它非字符串类型先转 str。
    """
    if text is None:
        text = ""
    elif not isinstance(text, str):
        text = str(text)
    text = _NEWLINE_RE.sub(" ", strip_bom(text))
    text = "".join(
        ch for ch in text
        if ch == "\t" or unicodedata.category(ch) != "Cc"
    ).replace("\t", " ")
    return text.strip()


def strip_punct(text: str) -> str:
    """去除所有标点符号、符号与空白，只保留字母/数字/汉字。"""
    return "".join(
        ch for ch in text
        if not unicodedata.category(ch).startswith("P")
        and not unicodedata.category(ch).startswith("S")
        and not ch.isspace()
    )


def normalize_for_comparison(text: str) -> str:
    """溯源比对归一化：去掉空白与常见中英文标点。"""
    return _COMPARISON_STRIP_RE.sub("", text or "")


def soften_punctuation(text: str) -> str:
    """把 . , ， 。 、 替换为空格（上传剧本时的预处理）。"""
    if not isinstance(text, str):
        return ""
    return _SOFTEN_RE.sub(" ", text)
