# site_digest/report/json_report.py

"""
Граница выбора страниц для SiteDigest.

Список найденных страниц сохраняется в JSON, оператор снимает флаг
``selected`` у ненужных страниц, и файл читается обратно перед извлечением.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from site_digest.crawler.models import PageRef


def pages_to_dicts(pages: Sequence[PageRef]) -> List[Dict[str, Any]]:
    return [
        {"url": p.url, "title": p.title, "depth": p.depth, "selected": True}
        for p in pages
    ]


def render_json(pages: Sequence[PageRef], output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет список страниц в формате JSON по указанному пути.

    :param pages: найденные страницы в порядке обхода
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from site_digest.report.json_report import render_json
    report_path = render_json(pages, 'reports/pages.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(pages_to_dicts(pages), f, ensure_ascii=False, indent=2 if pretty else None)

    return output


def load_selection(path: Path | str) -> List[PageRef]:
    """
    Читает JSON-файл выбора и возвращает страницы с ``selected`` = true
    (отсутствие флага считается выбором).
    """
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding='utf-8'))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {p}: {exc}") from exc
    if not isinstance(data, list):
        raise TypeError(f"Верхний уровень JSON должен быть списком, получено {type(data).__name__}")

    selected: List[PageRef] = []
    for item in data:
        if not isinstance(item, dict) or "url" not in item:
            raise ValueError(f"Элемент выбора без url: {item!r}")
        if not item.get("selected", True):
            continue
        selected.append(
            PageRef(
                url=str(item["url"]),
                title=str(item.get("title") or item["url"]),
                depth=int(item.get("depth", 1)),
            )
        )
    return selected
