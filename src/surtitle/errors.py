"""surtitle 异常定义。"""


class SurtitleError(Exception):
    """所有 surtitle 异常的基类。"""


class SegmentRejected(SurtitleError):
    """
    单个 chunk 的服务输出被拒收（质量问题）。

    只影响该 chunk：由 Segmenter 捕获并改用确定性回退分段。
    """

    code = "REJECTED"

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class ParseFailure(SegmentRejected):
    """服务输出无法解析为 JSON array。"""

    code = "INVALID_JSON"


class EmptyOutput(SegmentRejected):
    """解析后没有任何有效字幕行。"""

    code = "EMPTY_OUTPUT"


class PlaceholderOutput(SegmentRejected):
    """所有行都是 "第三句" 之类的序号占位符。"""

    code = "PLACEHOLDER_OUTPUT"


class InvalidOutput(SegmentRejected):
    """存在无法在原文中溯源的行。"""

    code = "INVALID_LLM_OUTPUT"


class TransportFailure(SurtitleError):
    """
    文本理解服务不可达或没有返回任何内容。

    不在 chunk 级别处理：中止整次分段，不提交任何结果。
    """

    code = "TRANSPORT_FAILURE"

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class SessionNotFound(SurtitleError):
    """按 id 查询的 session 不存在。"""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id
