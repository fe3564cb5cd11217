"""
Shared fixtures for the Ctxdex test suite.
"""

import json
import sys
import warnings
from pathlib import Path

import pytest

# Filter deprecation warnings from pytest-asyncio; we cannot fix the library.
warnings.filterwarnings(
    "ignore",
    category=DeprecationWarning,
    module="pytest_asyncio",
)

# Ensure the src/ directory is on the import path so that
# ctxdex.core.* can be imported without an editable install.
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_ROOT))

from ctxdex.core.catalog import (  # noqa: E402
    MethodElement,
    Parameter,
    PropertyElement,
    Signature,
    StaticCatalogSource,
    TypeElement,
)
from ctxdex.core.config import CtxdexConfig  # noqa: E402
from ctxdex.core.index import CatalogIndex  # noqa: E402
from ctxdex.core.search import CatalogSearchEngine  # noqa: E402


# =============================================================================
# Fixtures: a small platform catalog
# =============================================================================

@pytest.fixture
def value_table() -> TypeElement:
    """ТаблицаЗначений with three methods, two properties and one constructor."""
    return TypeElement(
        name="ТаблицаЗначений",
        description="Объект для хранения данных в виде таблицы.",
        methods=(
            MethodElement(
                name="Количество",
                description="Получает количество строк.",
                signatures=(Signature(name="Основной"),),
                return_type="Число",
            ),
            MethodElement(
                name="Добавить",
                description="Добавляет строку в конец таблицы.",
                return_type="СтрокаТаблицыЗначений",
            ),
            MethodElement(
                name="Найти",
                description="Осуществляет поиск значения.",
                signatures=(Signature(params=(
                    Parameter(name="Значение", type="Произвольный", required=True),
                    Parameter(name="Колонки", type="Строка"),
                )),),
            ),
        ),
        properties=(
            PropertyElement(name="Колонки", readonly=True, type="КоллекцияКолонокТаблицыЗначений"),
            PropertyElement(name="Строки", readonly=True),
        ),
        constructors=(Signature(name="По умолчанию", description="Создает пустую таблицу."),),
    )


@pytest.fixture
def query_selection() -> TypeElement:
    return TypeElement(
        name="ВыборкаИзРезультатаЗапроса",
        methods=(MethodElement(name="Следующий"), MethodElement(name="Получить")),
        properties=(PropertyElement(name="Количество", type="Число"),),
    )


@pytest.fixture
def sample_source(value_table, query_selection) -> StaticCatalogSource:
    """The reference catalog: one global method, one global property, two types."""
    return StaticCatalogSource(
        methods=[
            MethodElement(
                name="НайтиПоСсылке",
                alias="FindByRef",
                description="Находит объект по ссылке.",
                signatures=(Signature(params=(
                    Parameter(name="Ссылка", type="ЛюбаяСсылка", required=True,
                              description="Ссылка на объект."),
                )),),
                return_type="Объект",
            ),
        ],
        properties=[
            PropertyElement(name="ТекущаяДата", description="Текущая дата сеанса.",
                            readonly=True, type="Дата"),
        ],
        types=[value_table, query_selection],
    )


@pytest.fixture
def config() -> CtxdexConfig:
    """Config with defaults and no environment influence."""
    return CtxdexConfig()


@pytest.fixture
def index(sample_source) -> CatalogIndex:
    return CatalogIndex(sample_source)


@pytest.fixture
def engine(index, config) -> CatalogSearchEngine:
    return CatalogSearchEngine(index, config=config)


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """A catalog directory in the exported JSON layout."""
    directory = tmp_path / "catalog"
    directory.mkdir()
    (directory / "global-methods.json").write_text(json.dumps([
        {
            "name": "Сообщить",
            "name_en": "Message",
            "description": "Выводит сообщение.",
            "signature": [{
                "description": "Основной",
                "params": [
                    {"required": True, "name": "ТекстСообщения", "type": "Строка"},
                    {"required": False, "name": "Статус", "type": "СтатусСообщения"},
                ],
            }],
        },
        {"name": "ТекущаяДатаСеанса", "signature": [], "return": "Дата"},
    ], ensure_ascii=False), encoding="utf-8")
    (directory / "global-properties.json").write_text(json.dumps([
        {"name": "Справочники", "readonly": True, "type": "СправочникиМенеджер"},
    ], ensure_ascii=False), encoding="utf-8")
    (directory / "types.json").write_text(json.dumps([
        {
            "name": "Массив",
            "description": "Коллекция значений.",
            "methods": [{"name": "Добавить", "signature": []}],
            "properties": [],
            "constructors": [
                {"name": "ПоКоличеству", "params": [
                    {"required": False, "name": "КоличествоЭлементов", "type": "Число"},
                ]},
            ],
        },
    ], ensure_ascii=False), encoding="utf-8")
    return directory
