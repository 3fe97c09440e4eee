"""
Web: FastAPI 外壳（REST + WebSocket 实时通道 + 静态文件）
"""
