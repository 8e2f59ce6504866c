"""Serialization of the persisted and export documents."""

from simplebudget.serialization.serializer import (
    MalformedImportError,
    StateDecodeError,
    dump_state,
    export_document,
    export_filename,
    export_json,
    load_state,
    parse_import,
    parse_import_text,
)

__all__ = [
    "MalformedImportError",
    "StateDecodeError",
    "dump_state",
    "export_document",
    "export_filename",
    "export_json",
    "load_state",
    "parse_import",
    "parse_import_text",
]
