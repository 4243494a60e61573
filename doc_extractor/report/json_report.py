# doc_extractor/report/json_report.py

"""
Генерация JSON-отчёта для проекта DocExtractor.

Сериализация объекта ExtractionReport в файл.
"""
import json
from dataclasses import asdict
from pathlib import Path

from doc_extractor.aggregator import ExtractionReport


def render_json(report: ExtractionReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет отчёт report в формате JSON по указанному пути.

    :param report: объект ExtractionReport с результатами обхода
    :param output_path: путь к JSON-файлу
    :param pretty: отступ 2 пробела
    :return: Path сохранённого файла

    Пример:
    ```python
    from doc_extractor.report.json_report import render_json
    report_path = render_json(report, 'reports/docs.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(asdict(report), f, ensure_ascii=False, indent=2 if pretty else None)

    return output
