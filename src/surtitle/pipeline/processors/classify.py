"""
Heuristic Classifier: 单行文本 → dialogue / direction

纯函数。规则按顺序求值，首个命中的规则决定结果（short-circuit）：

  a. 整行被括号包住，且括号内为空或命中舞台词汇       → direction
  b. 以舞台词汇开头（舞台、燈光、音效、合唱、黑燈……）  → direction
  c. 短句（≤16 字）、不以句末标点结尾、含动作/场面短词 → direction
  d. 整行被括号包住但不满足 a                           → dialogue
  e. 无引号且命中 ≥2 个舞台关键词                       → direction
  f. 前 6 个字内有说话人冒号：标签是舞台词 → direction，否则 → dialogue
  g. 无句末标点、≤24 字、无冒号、恰好命中 1 个关键词    → direction
  h. 无句末标点且含移动/姿态动词                         → direction
  默认 → dialogue

括号结构与说话人标签优先于关键词密度：提到道具的引号对白不会被误判。
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from surtitle.schema.script_model import LineType
from surtitle.utils.text import sanitize_line_text

# 可调阈值
SHORT_TEXT_MAX = 16
SINGLE_HIT_TEXT_MAX = 24
SPEAKER_COLON_CUTOFF = 6

OPEN_BRACKETS = "（(【《〈「『[{"
CLOSE_BRACKETS = "）)】》〉」』]}"

BRACKET_WRAPPED_RE = re.compile(
    rf"^[{re.escape(OPEN_BRACKETS)}]+.*[{re.escape(CLOSE_BRACKETS)}]+$"
)
LEADING_OPEN_RE = re.compile(rf"^[{re.escape(OPEN_BRACKETS)}]+")
TRAILING_CLOSE_RE = re.compile(rf"[{re.escape(CLOSE_BRACKETS)}]+$")
KEYWORD_NOISE_RE = re.compile(r"[「」『』“”\"'\[\]【】（）()]")

STAGING_PREFIX_RE = re.compile(
    r"^(舞台|燈光|音效|鼓聲|掌聲|旁白|全場|幕前|幕後|場景|轉場|黑場|環境音|所有人|眾人"
    r"|合唱|群眾|燈暗|燈亮|黑燈|大合唱|音樂|序曲|旁白聲)"
)
STAGING_STEM_RE = re.compile(
    r"^(舞台|燈光|音效|鼓聲|掌聲|旁白|全場|眾人|合唱|群眾|黑場|轉場|燈暗|燈亮|黑燈"
    r"|音樂|序曲|旁白聲|幕前|幕後)$"
)
SHORT_ACTION_RE = re.compile(
    r"(舞台|燈光|音效|暗|靜場|沉默|鼓聲|掌聲|開燈|滅燈|移動|進場|退場|轉身)"
)
SPEAKER_STAGING_RE = re.compile(r"(舞台|燈光|音效|鼓聲|掌聲|音樂)")
MOVEMENT_RE = re.compile(
    r"(向|朝|緩緩|慢慢|看著|走向|退後|收起|拿起|放下|起身|坐下|站起|抱住|走上|走下|握住)"
)
TERMINAL_PUNCT = "。！？!?"
QUOTE_RE = re.compile(r"[\"「」『』“”]")

DIRECTION_KEYWORDS = (
    "舞台", "燈光", "音效", "鼓聲", "掌聲", "黑場", "轉場", "幕", "暗", "亮",
    "靜", "沉默", "旁白", "群眾", "合唱", "環境音", "音樂", "奏起", "響起", "舞者",
    "演員", "走向", "退場", "進場", "登場", "起身", "坐下", "站起", "看向", "抱住",
    "摟住", "移動", "轉向", "指向", "望向", "停頓",
)


@dataclass(frozen=True)
class LineFeatures:
    """规则求值所需的派生特征（每行只计算一次）。"""
    text: str
    bracketed: bool
    inner: str
    keyword_hits: int
    has_quotes: bool
    colon_index: int
    ends_with_terminal: bool
    has_terminal: bool

    @property
    def speaker(self) -> str:
        return self.text[: self.colon_index] if self.colon_index >= 0 else ""


def extract_features(text: str) -> LineFeatures:
    trimmed = sanitize_line_text(text)
    bracketed = bool(BRACKET_WRAPPED_RE.match(trimmed))
    inner = ""
    if bracketed:
        inner = TRAILING_CLOSE_RE.sub("", LEADING_OPEN_RE.sub("", trimmed)).strip()
    keyword_target = KEYWORD_NOISE_RE.sub("", inner if inner else trimmed)
    hits = sum(1 for kw in DIRECTION_KEYWORDS if kw in keyword_target)
    # 与全角/半角冒号各自首次出现位置取较大者
    colon_index = max(trimmed.find("："), trimmed.find(":"))
    return LineFeatures(
        text=trimmed,
        bracketed=bracketed,
        inner=inner,
        keyword_hits=hits,
        has_quotes=bool(QUOTE_RE.search(trimmed)),
        colon_index=colon_index,
        ends_with_terminal=bool(trimmed) and trimmed[-1] in TERMINAL_PUNCT,
        has_terminal=any(ch in TERMINAL_PUNCT for ch in trimmed),
    )


@dataclass(frozen=True)
class ClassifyRule:
    name: str
    predicate: Callable[[LineFeatures], bool]
    verdict: LineType


def _bracketed_staging(f: LineFeatures) -> bool:
    return f.bracketed and (
        not f.inner or f.keyword_hits >= 1 or bool(STAGING_STEM_RE.match(f.inner))
    )


def _speaker_label(f: LineFeatures) -> bool:
    return 0 <= f.colon_index <= SPEAKER_COLON_CUTOFF


RULES: List[ClassifyRule] = [
    ClassifyRule("bracketed_staging", _bracketed_staging, LineType.DIRECTION),
    ClassifyRule(
        "staging_prefix",
        lambda f: bool(STAGING_PREFIX_RE.match(f.text)),
        LineType.DIRECTION,
    ),
    ClassifyRule(
        "short_action",
        lambda f: (
            not f.ends_with_terminal
            and len(f.text) <= SHORT_TEXT_MAX
            and bool(SHORT_ACTION_RE.search(f.text))
        ),
        LineType.DIRECTION,
    ),
    ClassifyRule("bracketed_dialogue", lambda f: f.bracketed, LineType.DIALOGUE),
    ClassifyRule(
        "keyword_density",
        lambda f: not f.has_quotes and f.keyword_hits >= 2,
        LineType.DIRECTION,
    ),
    ClassifyRule(
        "staging_speaker",
        lambda f: _speaker_label(f) and bool(SPEAKER_STAGING_RE.search(f.speaker)),
        LineType.DIRECTION,
    ),
    ClassifyRule("speaker_label", _speaker_label, LineType.DIALOGUE),
    ClassifyRule(
        "single_keyword",
        lambda f: (
            f.keyword_hits == 1
            and not f.has_terminal
            and len(f.text) <= SINGLE_HIT_TEXT_MAX
            and f.colon_index < 0
        ),
        LineType.DIRECTION,
    ),
    ClassifyRule(
        "movement_verb",
        lambda f: not f.has_terminal and bool(MOVEMENT_RE.search(f.text)),
        LineType.DIRECTION,
    ),
]


def match_rule(text: str, rules: Optional[List[ClassifyRule]] = None) -> Optional[ClassifyRule]:
    """返回第一个命中的规则；空文本或都不命中返回 None。"""
    features = extract_features(text)
    if not features.text:
        return None
    for rule in rules if rules is not None else RULES:
        if rule.predicate(features):
            return rule
    return None


def classify_line(text: str) -> LineType:
    """判定一行文本是对白还是舞台指示。"""
    rule = match_rule(text)
    return rule.verdict if rule else LineType.DIALOGUE


def is_likely_direction(text: str) -> bool:
    return classify_line(text) == LineType.DIRECTION
