"""外部模型服务客户端。"""
