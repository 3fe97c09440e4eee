"""
Prompt 模板加载器

职责：
- 从 YAML 文件加载 prompt 模板（同目录下的 <name>.yaml）
- 支持 $variable 变量替换（string.Template）
- 支持嵌套 section 访问（"file_name.section"）

用法：
    from surtitle.prompts import load_prompt

    p = load_prompt("script_segment",
        chunk_number="1",
        total_chunks="3",
        max_line_length="20",
        chunk_text="……",
    )
    print(p.system)
    print(p.user)
"""
import string
from pathlib import Path
from typing import Any, Dict

import yaml

_PROMPTS_DIR = Path(__file__).parent
_cache: Dict[str, dict] = {}


def _load_yaml(name: str) -> dict:
    """加载并缓存 YAML 文件。"""
    if name not in _cache:
        yaml_path = _PROMPTS_DIR / f"{name}.yaml"
        with open(yaml_path, "r", encoding="utf-8") as f:
            _cache[name] = yaml.safe_load(f) or {}
    return _cache[name]


def _substitute(text: str, **kwargs: Any) -> str:
    """使用 string.Template 进行变量替换（$variable）。"""
    if not text:
        return ""
    return string.Template(text).safe_substitute(**kwargs)


class RenderedPrompt:
    """渲染后的 prompt，包含 system/user/text 字段。"""

    __slots__ = ("system", "user", "text")

    def __init__(self, system: str = "", user: str = "", text: str = ""):
        self.system = system.strip()
        self.user = user.strip()
        self.text = text.strip()

    def to_messages(self) -> list:
        """转为 [{"role", "content"}] 消息列表（空字段跳过）。"""
        messages = []
        if self.system:
            messages.append({"role": "system", "content": self.system})
        if self.user:
            messages.append({"role": "user", "content": self.user})
        return messages

    def __repr__(self) -> str:
        parts = []
        if self.system:
            parts.append(f"system={len(self.system)} chars")
        if self.user:
            parts.append(f"user={len(self.user)} chars")
        if self.text:
            parts.append(f"text={len(self.text)} chars")
        return f"RenderedPrompt({', '.join(parts)})"


def load_prompt(name: str, **kwargs: Any) -> RenderedPrompt:
    """
    加载并渲染 prompt 模板。

    Args:
        name: 模板名，格式 "file_name" 或 "file_name.section.subsection"
        **kwargs: 模板变量（替换 $variable）

    Returns:
        RenderedPrompt
    """
    parts = name.split(".", 1)
    file_name = parts[0]
    section_path = parts[1] if len(parts) > 1 else None

    data = _load_yaml(file_name)

    if section_path:
        for key in section_path.split("."):
            if isinstance(data, dict) and key in data:
                data = data[key]
            else:
                raise KeyError(
                    f"Section '{section_path}' not found in template '{file_name}'"
                )

    if not isinstance(data, dict):
        return RenderedPrompt(text=_substitute(str(data), **kwargs))

    return RenderedPrompt(
        system=_substitute(data.get("system", ""), **kwargs),
        user=_substitute(data.get("user", ""), **kwargs),
        text=_substitute(data.get("prompt", ""), **kwargs),
    )
