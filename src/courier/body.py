"""Request body helpers: file-upload markers and form flattening."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, BinaryIO, Mapping


@dataclass(frozen=True)
class FileUpload:
    """Marks a body value as a file to send as a multipart part."""

    path: str | os.PathLike[str]
    filename: str | None = None
    content_type: str | None = None

    def open(self) -> tuple[str, BinaryIO, str | None]:
        """Open the file and return a ``(filename, handle, type)`` tuple.

        The caller owns the handle and must close it.
        """
        filename = self.filename or os.path.basename(os.fspath(self.path))
        return filename, open(self.path, "rb"), self.content_type


def _children(data: Any) -> Mapping[Any, Any] | None:
    if isinstance(data, (FileUpload, Enum, str, bytes)):
        return None
    if isinstance(data, Mapping):
        return data
    if isinstance(data, (list, tuple)):
        return dict(enumerate(data))
    if hasattr(data, "__dict__"):
        return {k: v for k, v in vars(data).items() if not k.startswith("_")}
    return None


def _leaf(value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "1" if value else "0"
    return value


def is_structured(body: Any) -> bool:
    """Return True when ``body`` can be flattened into key/value pairs."""
    return body is not None and _children(body) is not None


def flatten_body(data: Any, parent: str | None = None) -> dict[str, Any]:
    """Flatten nested mappings into one level of ``parent[child]`` keys.

    Sequences are indexed by position and plain objects contribute their
    public attributes. ``FileUpload`` markers are kept as values at any
    depth. Booleans become ``"1"``/``"0"`` and ``None`` values are dropped.
    """
    result: dict[str, Any] = {}
    children = _children(data)
    if children is None:
        raise TypeError(f"cannot flatten {type(data).__name__} body")

    for key, value in children.items():
        new_key = f"{parent}[{key}]" if parent is not None else str(key)
        if _children(value) is not None:
            result.update(flatten_body(value, new_key))
        elif value is not None:
            result[new_key] = _leaf(value)
    return result


def split_files(
    flat: Mapping[str, Any],
) -> tuple[dict[str, Any], dict[str, FileUpload]]:
    """Separate file-upload markers from ordinary form fields."""
    fields: dict[str, Any] = {}
    files: dict[str, FileUpload] = {}
    for key, value in flat.items():
        if isinstance(value, FileUpload):
            files[key] = value
        else:
            fields[key] = value
    return fields, files
