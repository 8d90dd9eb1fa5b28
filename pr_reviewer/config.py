"""
应用配置加载。

设计目标：
- **严格**：缺少必要环境变量就直接报错（避免“看起来跑了其实没配置好”）
- **类型安全**：使用 Pydantic 校验 URL/字符串等，减少运行时踩坑
- **可测试**：核心加载函数接收 `environ` 显式输入，便于单元测试

平台 token 按需：只有真正要访问的平台才需要配置（在 `require_*` 时检查）。
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, Field, HttpUrl

from pr_reviewer.errors import MissingCredentialError

DEFAULT_LLM_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
# 优先级从高到低：最优先的模型放在最前面
DEFAULT_LLM_MODELS: tuple[str, ...] = ("gemini-2.0-flash", "gemini-1.5-pro", "gemini-1.5-flash")
DEFAULT_GITHUB_API_BASE_URL = "https://api.github.com"
DEFAULT_BITBUCKET_API_BASE_URL = "https://api.bitbucket.org/2.0"


class LLMConfig(BaseModel):
    base_url: HttpUrl
    api_key: str
    models: tuple[str, ...] = Field(min_length=1)


class GitHubConfig(BaseModel):
    api_base_url: HttpUrl
    token: str


class BitbucketConfig(BaseModel):
    api_base_url: HttpUrl
    access_token: str


class AppConfig(BaseModel):
    """LLM 必填；GitHub / Bitbucket 可选（用到哪个平台才需要哪个 token）。"""

    llm: LLMConfig
    github: GitHubConfig | None = None
    bitbucket: BitbucketConfig | None = None
    review_timeout_seconds: float | None = None


def _get(environ: Mapping[str, str], key: str) -> str | None:
    value = environ.get(key, "").strip()
    return value or None


def _parse_models(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_LLM_MODELS
    models = tuple(m.strip() for m in raw.split(",") if m.strip())
    if not models:
        raise ValueError("LLM_MODELS must list at least one model")
    return models


def load_config_from_env(environ: Mapping[str, str]) -> AppConfig:
    """
    从环境变量加载并校验配置。

    - **输入**：`environ`（例如 `os.environ`）
    - **输出**：`AppConfig`
    - **失败**：LLM_API_KEY 缺失/为空抛 `MissingCredentialError`（也是 `ValueError`）；格式非法抛 `ValueError`
    """
    api_key = _get(environ, "LLM_API_KEY")
    if api_key is None:
        raise MissingCredentialError("Missing required env vars: LLM_API_KEY")

    timeout_raw = _get(environ, "REVIEW_TIMEOUT_SECONDS")
    timeout = float(timeout_raw) if timeout_raw is not None else None
    if timeout is not None and timeout <= 0:
        raise ValueError("REVIEW_TIMEOUT_SECONDS must be > 0")

    github_token = _get(environ, "GITHUB_TOKEN")
    bitbucket_token = _get(environ, "BITBUCKET_ACCESS_TOKEN")

    # 交给 Pydantic 做类型校验（例如 URL 合法性）
    return AppConfig(
        llm=LLMConfig(
            base_url=_get(environ, "LLM_BASE_URL") or DEFAULT_LLM_BASE_URL,
            api_key=api_key,
            models=_parse_models(_get(environ, "LLM_MODELS")),
        ),
        github=(
            GitHubConfig(
                api_base_url=_get(environ, "GITHUB_API_BASE_URL") or DEFAULT_GITHUB_API_BASE_URL,
                token=github_token,
            )
            if github_token is not None
            else None
        ),
        bitbucket=(
            BitbucketConfig(
                api_base_url=_get(environ, "BITBUCKET_API_BASE_URL") or DEFAULT_BITBUCKET_API_BASE_URL,
                access_token=bitbucket_token,
            )
            if bitbucket_token is not None
            else None
        ),
        review_timeout_seconds=timeout,
    )


def require_github(config: AppConfig) -> GitHubConfig:
    if config.github is None:
        raise MissingCredentialError("Missing required env vars: GITHUB_TOKEN")
    return config.github


def require_bitbucket(config: AppConfig) -> BitbucketConfig:
    if config.bitbucket is None:
        raise MissingCredentialError("Missing required env vars: BITBUCKET_ACCESS_TOKEN")
    return config.bitbucket
