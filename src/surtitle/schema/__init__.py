"""数据模型：字幕行与 session 文档。"""
