"""Utility functions for the BOSS service."""

import dataclasses
import json
import logging
import os
import pathlib
import typing
from typing import Any
from typing import Callable
from typing import TypeVar


T = TypeVar("T")

logger = logging.getLogger(__name__)


def env(key: str, convert: Callable[[str], T] = typing.cast(Callable[[str], T], str), **kwargs: Any) -> T:
    """Load a value from environment variables with optional default and type conversion."""
    key, partition, default = key.partition(":")

    def default_factory(
        key_val: str = key, default_val: str = default, convert_func: Callable[[str], T] = convert
    ) -> T:
        if key_val in os.environ:
            return convert_func(os.environ[key_val])

        if partition == ":":
            return convert_func(default_val)

        raise KeyError(key_val)

    return typing.cast(T, dataclasses.field(default_factory=default_factory, **kwargs))


def to_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def load_json_file(path: str) -> Any:
    """Read a JSON document from disk."""
    file_path = pathlib.Path(path)
    logger.info(f"Loading JSON file: {file_path}")
    with file_path.open("r") as fp:
        return json.load(fp)
