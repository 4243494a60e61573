# File: doc_extractor/utils.py
"""doc_extractor.utils: Нормализация адресов и фильтры области обхода."""

from __future__ import annotations

from typing import Callable, Sequence
from urllib.parse import urldefrag, urlparse, urlunparse

from doc_extractor.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "is_http_url",
    "extract_domain",
    "path_prefix",
    "make_scope_filter",
)

_HTTP_SCHEMES = ("http", "https")


def normalize_url(url: str) -> str:
    """Приводит адрес к каноническому виду: схема и хост в нижнем регистре, без фрагмента.

    Пустой путь заменяется на ``/``; путь и query не трогаются.
    Функция идемпотентна.
    """
    stripped, _fragment = urldefrag(url.strip())
    parsed = urlparse(stripped)
    path = parsed.path or "/"
    return urlunparse(
        (parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.params, parsed.query, "")
    )


def is_http_url(url: str) -> bool:
    """Проверяет, что адрес использует http(s) и содержит хост."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme.lower() in _HTTP_SCHEMES and bool(parsed.netloc)


def extract_domain(url: str) -> str:
    """Возвращает хост адреса в нижнем регистре."""
    return urlparse(url).netloc.lower()


def path_prefix(url: str) -> str:
    """Возвращает «каталог» пути: ``/docs/intro`` -> ``/docs/``."""
    path = urlparse(url).path or "/"
    return path.rsplit("/", 1)[0] + "/"


def make_scope_filter(
    root: str,
    *,
    same_host: bool = True,
    same_path_prefix: bool = False,
) -> Callable[[str], bool]:
    """Строит предикат области обхода относительно корневого адреса.

    Предикат применяется к уже нормализованным адресам.
    """
    root_host = extract_domain(root)
    root_prefix = path_prefix(root)

    def _in_scope(url: str) -> bool:
        parsed = urlparse(url)
        if same_host and parsed.netloc.lower() != root_host:
            return False
        if same_path_prefix and not (parsed.path or "/").startswith(root_prefix):
            return False
        return True

    logger.debug(
        "Scope for %s: same_host=%s same_path_prefix=%s (%s)",
        root, same_host, same_path_prefix, root_prefix,
    )
    return _in_scope
