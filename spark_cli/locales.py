"""User-facing messages in the supported languages."""

from __future__ import annotations

from typing import Literal

Language = Literal["en", "zh"]

DEFAULT_LANGUAGE: Language = "en"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "unauthorized": (
            "Unauthorized. Check your Spark API key (--api-key or the SPARK_API_KEY "
            "environment variable)."
        ),
        "api_error": "Spark API error",
        "unknown_error": "unknown error",
        "error_code": "code",
        "timeout": "Request timed out after {timeout:g}s",
    },
    "zh": {
        "unauthorized": "鉴权失败，请检查星火 API Key（--api-key 或环境变量 SPARK_API_KEY）。",
        "api_error": "Spark API错误",
        "unknown_error": "未知错误",
        "error_code": "错误码",
        "timeout": "请求超时（{timeout:g} 秒）",
    },
}


def get_message(key: str, language: str = DEFAULT_LANGUAGE, **kwargs: object) -> str:
    """Return the message for ``key`` in ``language``, falling back to English."""
    table = MESSAGES.get(language, MESSAGES[DEFAULT_LANGUAGE])
    template = table.get(key, MESSAGES[DEFAULT_LANGUAGE][key])
    return template.format(**kwargs) if kwargs else template
