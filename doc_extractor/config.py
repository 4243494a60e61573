# === FILE: doc_extractor/config.py ===
"""
Модуль для загрузки и валидации конфигурации DocExtractor.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

FetchMode = Literal["direct", "render_proxy", "relay_proxy"]

_DEFAULT_DELAYS: List[float] = [1.0, 5.0, 15.0]


def _check_delays(delays: List[float]) -> List[float]:
    if any(d < 0 for d in delays):
        raise ValueError("retry delays must be non-negative")
    if any(b < a for a, b in zip(delays, delays[1:])):
        raise ValueError("retry delays must be non-decreasing")
    return delays


class FormatterConfig(BaseModel):
    """Настройки клиента LLM-форматирования HTML -> Markdown."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = Field(False, description="Форматировать скачанные страницы в Markdown.")
    api_url: HttpUrl = Field(
        "https://openrouter.ai/api/v1/chat/completions",
        description="Endpoint совместимый с OpenAI chat completions.",
    )
    api_key: Optional[str] = Field(
        default_factory=lambda: os.environ.get("OPENROUTER_API_KEY"),
        description="Ключ API (по умолчанию из OPENROUTER_API_KEY).",
    )
    model: str = Field("google/gemini-2.0-flash-exp:free", min_length=1)
    temperature: float = Field(0.3, ge=0, le=2)
    max_tokens: int = Field(4000, ge=1)
    timeout: float = Field(120.0, gt=0, description="Таймаут одного запроса к LLM (секунд).")
    concurrency: int = Field(2, ge=1, description="Одновременных запросов к LLM.")
    retry_delays: List[float] = Field(default_factory=lambda: list(_DEFAULT_DELAYS))
    include_images: bool = Field(False, description="Заменять src картинок локальными именами.")
    image_to_text: bool = Field(False, description="Заменять картинки текстовыми заглушками.")

    @field_validator("retry_delays")
    def _validate_delays(cls, v: List[float]) -> List[float]:
        return _check_delays(v)


class CrawlerConfig(BaseModel):
    """Конфигурация для одного запуска обхода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: Optional[HttpUrl] = Field(None, description="Корневой URL по умолчанию.")
    max_depth: int = Field(2, ge=0, le=5, description="Бюджет глубины обхода.")
    concurrency: int = Field(3, ge=1, description="Максимум одновременных загрузок.")
    retry_delays: List[float] = Field(
        default_factory=lambda: list(_DEFAULT_DELAYS),
        description="Паузы между повторными попытками (секунд).",
    )
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    scan_timeout: Optional[float] = Field(None, gt=0, description="Таймаут всего обхода (секунд).")
    user_agent: str = Field("DocExtractor/1.0", min_length=1, description="Заголовок User-Agent.")
    fetch_mode: FetchMode = Field("direct", description="Способ получения страниц.")
    proxy_url: Optional[HttpUrl] = Field(None, description="Адрес прокси для режимов *_proxy.")
    same_host: bool = Field(True, description="Оставаться на хосте корневого адреса.")
    same_path_prefix: bool = Field(False, description="Оставаться внутри каталога корневого адреса.")

    formatter: FormatterConfig = Field(default_factory=FormatterConfig)

    @field_validator("retry_delays")
    def _validate_delays(cls, v: List[float]) -> List[float]:
        return _check_delays(v)

    @model_validator(mode="after")
    def _check_proxy(self) -> CrawlerConfig:
        if self.fetch_mode != "direct" and self.proxy_url is None:
            raise ValueError(f"fetch_mode={self.fetch_mode!r} requires proxy_url")
        return self


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None], *, missing_ok: bool = False) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlerConfig.
    При отсутствии файла бросает FileNotFoundError; если path=None и
    missing_ok=True, а configs/default.yaml нет, возвращает значения по умолчанию.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            if missing_ok:
                return CrawlerConfig()
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return CrawlerConfig(**data)


__all__ = ["CrawlerConfig", "FormatterConfig", "FetchMode", "load_config"]
