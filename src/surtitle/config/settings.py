import os
from dataclasses import dataclass, fields
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "SURTITLE_"


def load_env_file(env_path: str | Path | None = None) -> None:
    """
    加载项目级 .env 文件（显式加载，不覆盖已存在的环境变量）。

    如果 env_path 为 None，从当前工作目录和本文件所在目录向上查找 .env。

    Args:
        env_path: .env 文件路径（None = 自动查找）
    """
    if env_path is None:
        search_roots = [Path.cwd().resolve(), Path(__file__).resolve()]
        for root in search_roots:
            for parent in [root, *root.parents]:
                env_file = parent / ".env"
                if env_file.is_file():
                    load_dotenv(env_file, override=False)
                    return
    else:
        env_path = Path(env_path)
        if env_path.exists():
            load_dotenv(env_path, override=False)


def get_openai_key() -> str | None:
    """
    仅从系统环境变量读取。
    优先使用官方 OPENAI_API_KEY，回退到 OPENAI_KEY。
    """
    return os.getenv("OPENAI_API_KEY") or os.getenv("OPENAI_KEY")


def get_access_code() -> str | None:
    """
    控制端共享口令（SURTITLE_ACCESS_CODE）。
    未设置时不启用口令校验。
    """
    value = os.getenv(f"{ENV_PREFIX}ACCESS_CODE")
    return value.strip() if value and value.strip() else None


@dataclass
class AppConfig:
    # ── 分段（Chunker / Post-processor）──
    max_chunk_length: int = 2500        # 每个 chunk 的最大字数
    max_line_length: int = 20           # 对白行最大字数（舞台指示不受限）
    soften_punctuation: bool = True     # 上传时把 . , ， 。 、 替换为空格

    # ── 溯源校验 ──
    grounding_min_snippet: int = 3      # 子串比对的最短长度
    grounding_max_snippet: int = 8      # 子串比对的最长长度

    # ── 文本理解服务（OpenAI）──
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.1
    openai_max_output_tokens: int = 4000
    openai_max_retries: int = 2         # SDK 层重试次数（超出即视为传输失败）
    segment_max_workers: int = 4        # chunk 并发请求数

    # ── Web ──
    max_script_bytes: int = 512 * 1024  # 上传剧本大小上限
    default_session_id: str = "default"
    access_code: str | None = None      # None = 读取 SURTITLE_ACCESS_CODE
    static_dir: str | None = None       # 前端静态文件目录（None 则不挂载）

    def __post_init__(self):
        if self.access_code is None:
            self.access_code = get_access_code()
        self._apply_env_overrides()

    def _apply_env_overrides(self) -> None:
        """SURTITLE_<FIELD> 环境变量覆盖同名字段（int/float/bool/str）。"""
        for f in fields(self):
            if f.name == "access_code":
                continue
            raw = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None or raw.strip() == "":
                continue
            current = getattr(self, f.name)
            raw = raw.strip()
            if isinstance(current, bool):
                value = raw.lower() in ("1", "true", "yes", "on")
            elif isinstance(current, int):
                value = int(raw)
            elif isinstance(current, float):
                value = float(raw)
            else:
                value = raw
            setattr(self, f.name, value)
