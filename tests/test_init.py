from __future__ import annotations

import logging

import moodnav


def test_public_exports_resolve() -> None:
    for name in moodnav.__all__:
        assert hasattr(moodnav, name), name


def test_version_is_set() -> None:
    assert moodnav.__version__ == "0.1.0"


def test_import_attaches_null_handler() -> None:
    root = logging.getLogger("moodnav")
    assert any(isinstance(handler, logging.NullHandler) for handler in root.handlers)
