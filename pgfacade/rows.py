"""
Row factories mapping result rows onto caller types.

These follow psycopg's row-factory protocol: a factory receives the cursor,
inspects its description once, and returns a callable turning each raw tuple
into a row. Two contracts are offered:

- `struct_row(T)` matches columns to fields by exact name.
- `scalar_row(T)` maps columns positionally and validates the value strictly.

Any mismatch raises `DecodeError`; values are never coerced or defaulted.
"""

from __future__ import annotations

import dataclasses
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    NoReturn,
    Optional,
    Sequence,
    Type,
    TypeVar,
    get_type_hints,
)

from pydantic import BaseModel, TypeAdapter, ValidationError

from pgfacade.errors import DecodeError

if TYPE_CHECKING:
    from psycopg import BaseCursor
    from psycopg.rows import RowMaker

T = TypeVar("T")


def _no_result(values: Sequence[Any]) -> NoReturn:
    raise DecodeError("the statement did not return a result set")


def _column_names(cursor: BaseCursor[Any, Any]) -> Optional[List[str]]:
    if cursor.description is None:
        return None
    return [col.name for col in cursor.description]


def _field_names(row_type: type) -> Optional[FrozenSet[str]]:
    """Names a struct type accepts, or None when they cannot be determined."""
    if isinstance(row_type, type) and issubclass(row_type, BaseModel):
        return frozenset(row_type.model_fields)
    if dataclasses.is_dataclass(row_type):
        return frozenset(f.name for f in dataclasses.fields(row_type) if f.init)
    fields = getattr(row_type, "_fields", None)
    if isinstance(fields, tuple):
        return frozenset(fields)
    return None


def _field_adapters(row_type: type) -> Dict[str, TypeAdapter[Any]]:
    """Strict per-field validators for annotated dataclasses and named tuples."""
    accepted = _field_names(row_type)
    if accepted is None:
        return {}
    hints = get_type_hints(row_type)
    return {name: TypeAdapter(hints[name]) for name in accepted if name in hints}


def _check_duplicates(row_type: type, names: Sequence[str]) -> None:
    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise DecodeError(f"duplicate column names {dupes} cannot map to {row_type.__name__}")


def _check_columns(row_type: type, names: Sequence[str]) -> None:
    _check_duplicates(row_type, names)
    accepted = _field_names(row_type)
    if accepted is None:
        return
    unknown = [n for n in names if n not in accepted]
    if unknown:
        raise DecodeError(f"no field in {row_type.__name__} for columns {unknown}")


def struct_row(row_type: Type[T]) -> Callable[[BaseCursor[Any, Any]], RowMaker[T]]:
    """
    Row factory decoding each row into `row_type` by column name.

    Supported targets are pydantic models, dataclasses, named tuples, `dict`
    (the raw column mapping) and any class taking the columns as keyword
    arguments. Column/field mismatches are reported when the query runs,
    before any row is built. Models and annotated fields are validated
    strictly, so a text "1" never lands in an int field.
    """
    is_model = isinstance(row_type, type) and issubclass(row_type, BaseModel)
    adapters = {} if is_model or row_type is dict else _field_adapters(row_type)

    def factory(cursor: BaseCursor[Any, Any]) -> RowMaker[T]:
        names = _column_names(cursor)
        if names is None:
            return _no_result

        _check_duplicates(row_type, names)
        if row_type is dict:

            def make_dict(values: Sequence[Any]) -> T:
                return dict(zip(names, values))  # type: ignore[return-value]

            return make_dict

        _check_columns(row_type, names)

        def make_row(values: Sequence[Any]) -> T:
            kwargs: Dict[str, Any] = dict(zip(names, values))
            try:
                if is_model:
                    return row_type.model_validate(kwargs, strict=True)  # type: ignore[attr-defined]
                for name, value in kwargs.items():
                    if name in adapters:
                        kwargs[name] = adapters[name].validate_python(value, strict=True)
                return row_type(**kwargs)
            except (ValidationError, TypeError) as exc:
                raise DecodeError(f"cannot decode row into {row_type.__name__}: {exc}") from exc

        return make_row

    return factory


def scalar_row(row_type: Any) -> Callable[[BaseCursor[Any, Any]], RowMaker[Any]]:
    """
    Row factory decoding each row positionally into `row_type`.

    A single column is validated as `row_type` itself; several columns are
    validated together as a tuple, so `row_type` must then be a tuple type
    such as `tuple[int, str]`. Validation is strict: a text "1" is not an int.
    """
    adapter = TypeAdapter(row_type)

    def factory(cursor: BaseCursor[Any, Any]) -> RowMaker[Any]:
        names = _column_names(cursor)
        if names is None:
            return _no_result
        width = len(names)

        def make_row(values: Sequence[Any]) -> Any:
            if width == 0:
                raise DecodeError("query returned no columns to decode")
            value = values[0] if width == 1 else tuple(values)
            try:
                return adapter.validate_python(value, strict=True)
            except ValidationError as exc:
                raise DecodeError(
                    f"cannot decode {width} column(s) into {row_type!r}: {exc}"
                ) from exc

        return make_row

    return factory


__all__ = ["scalar_row", "struct_row"]
