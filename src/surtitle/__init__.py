"""
surtitle: 剧场字幕机

剧本文本 → 有序的字幕行（对白 / 舞台指示），并把同一场演出的
"当前行"实时同步给多个控制端与观众端。
"""
__version__ = "1.0.0"
