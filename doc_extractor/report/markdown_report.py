# File: doc_extractor/report/markdown_report.py
"""doc_extractor.report.markdown_report: Сводный Markdown-документ через Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader

from doc_extractor.aggregator import ExtractionReport

TEMPLATE_NAME = "document.md.j2"
DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def render_markdown_text(
    report: ExtractionReport,
    template_dir: Optional[Union[Path, str]] = None,
) -> str:
    """Рендерит сводный документ и возвращает его текст."""
    env = Environment(
        loader=FileSystemLoader(str(template_dir or DEFAULT_TEMPLATE_DIR)),
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "root": report.root,
        "max_depth": report.max_depth,
        "downloaded": report.downloaded,
        "discovered": report.discovered,
    }
    return template.render(**context)


def render_markdown(
    report: ExtractionReport,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Сохраняет сводный документ по указанному пути.

    Args:
        report: объект ExtractionReport.
        output_path: путь к итоговому .md-файлу.
        template_dir: директория с шаблоном ``document.md.j2``
            (по умолчанию встроенный шаблон пакета).

    Returns:
        Path до сохранённого файла.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_markdown_text(report, template_dir), encoding="utf-8")
    return output_path
