"""
JSON Schema контракты фонда

Внешние представления движка проверяются по схемам Draft 2020-12:
- fund_config.json — JSON-конфиг фонда (до Pydantic)
- fund_event.json — каждое уведомление EventLog (strict режим)
- pool_snapshot.json — результат PooledFund.snapshot()

Схемы лежат в contracts/schema/ и проходят meta-validation при загрузке.
"""

import json
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterator, List

import jsonschema
from jsonschema import Draft202012Validator

SCHEMA_DIR = Path(__file__).parent / "schema"


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """Загрузка и кэширование схем из каталога."""

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or SCHEMA_DIR
        if not self._schema_dir.is_dir():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def available(self) -> List[str]:
        return sorted(p.stem for p in self._schema_dir.glob("*.json"))

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Raises:
            FileNotFoundError: Схемы с таким именем нет
            ValueError: Файл не является корректной JSON Schema
        """
        cached = self._schemas.get(schema_name)
        if cached is not None:
            return cached

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_path.name}: {e.message}") from e

        self._schemas[schema_name] = schema
        return schema


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """Валидатор одного контракта; имя схемы задаёт подкласс."""

    schema_name: ClassVar[str]

    def __init__(self, loader: SchemaLoader | None = None):
        self.schema = (loader or _SCHEMA_LOADER).load_schema(self.schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: Первое найденное нарушение
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[jsonschema.ValidationError]:
        return self.validator.iter_errors(data)

    def error_messages(self, data: Dict[str, Any]) -> List[str]:
        """Все нарушения в виде 'path: message', отсортированные по пути."""
        messages = []
        for error in sorted(self.iter_errors(data), key=lambda e: list(map(str, e.absolute_path))):
            path = "/".join(str(part) for part in error.absolute_path) or "<root>"
            messages.append(f"{path}: {error.message}")
        return messages


class FundConfigValidator(ContractValidator):
    schema_name = "fund_config"


class FundEventValidator(ContractValidator):
    schema_name = "fund_event"


class PoolSnapshotValidator(ContractValidator):
    schema_name = "pool_snapshot"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

# Уведомления проверяются на каждый emit: валидаторы создаются один раз
_VALIDATORS: Dict[type, ContractValidator] = {}


def _validator(cls: type) -> ContractValidator:
    if cls not in _VALIDATORS:
        _VALIDATORS[cls] = cls()
    return _VALIDATORS[cls]


def validate_fund_config(data: Dict[str, Any]) -> None:
    _validator(FundConfigValidator).validate(data)


def validate_fund_event(data: Dict[str, Any]) -> None:
    """
    Raises:
        jsonschema.ValidationError: Уведомление не соответствует fund_event
    """
    _validator(FundEventValidator).validate(data)


def validate_pool_snapshot(data: Dict[str, Any]) -> None:
    _validator(PoolSnapshotValidator).validate(data)
