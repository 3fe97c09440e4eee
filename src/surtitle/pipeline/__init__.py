"""
剧本分段 pipeline

数据流：
    bytes → decode → chunk → segment（服务 + 校验 + 回退）→ SubtitleLine[]
"""
