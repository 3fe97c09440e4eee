"""Configuration and settings"""
from .settings import AppConfig, get_access_code, get_openai_key, load_env_file

__all__ = ["AppConfig", "get_access_code", "get_openai_key", "load_env_file"]
