"""
Processors: 分段 pipeline 的无状态组件

- decode.py: 字节 → 文本（编码打分）
- chunk.py: 文本 → chunk
- classify.py: 单行 → dialogue / direction
- postprocess.py: 行规范化与长度限制
- llm_output.py: 服务输出解析与校验
- segment.py: chunk 调度、回退与重组
"""
