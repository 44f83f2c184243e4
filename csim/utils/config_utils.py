import os
import yaml
from dataclasses import MISSING, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, TypeVar, Union, get_args, get_origin, get_type_hints

import logging
logger = logging.getLogger(__name__)


class ConfigLoader(yaml.SafeLoader):
    # https://stackoverflow.com/questions/528281/how-can-i-include-a-yaml-file-inside-another
    def __init__(self, stream):
        name = getattr(stream, "name", None)
        self._root = os.path.split(name)[0] if isinstance(name, str) else os.getcwd()
        super(ConfigLoader, self).__init__(stream)

    def include(self, node):
        filename = os.path.join(self._root, self.construct_scalar(node))
        with open(filename, "r") as f:
            ret = yaml.load(f, ConfigLoader)
        assert ret is not None, "included file is empty? file: %s" % filename
        return ret


ConfigLoader.add_constructor("!include", ConfigLoader.include)


class BaseEnum(Enum):
    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        value = value.lower()
        for member in cls:
            if member.name.lower() == value:
                return member
        return None

    def __repr__(self):
        return self.name


T = TypeVar("T")


def _strip_optional(tp):
    if get_origin(tp) is Union:
        args = [a for a in get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def dict_to_dataclass(d: Any, cls: T, *, restrict_mode=True) -> T:
    """Build ``cls`` from plain YAML data.

    Nested dataclasses and enums are converted recursively. With
    ``restrict_mode`` a missing field without default raises, otherwise it is
    filled with ``None``. Unknown keys are rejected so that typos in config
    files do not silently fall back to defaults.
    """
    cls = _strip_optional(cls)

    if d is None:
        return None
    if cls is Any:
        return d

    if isinstance(cls, type) and issubclass(cls, Enum):
        return d if isinstance(d, cls) else cls(d)

    if not is_dataclass(cls):
        if get_origin(cls) is list:
            inner_cls = get_args(cls)[0]
            return [dict_to_dataclass(x, inner_cls, restrict_mode=restrict_mode) for x in d]
        elif get_origin(cls) is dict:
            key_type, val_type = get_args(cls)
            return {
                key_type(k): dict_to_dataclass(v, val_type, restrict_mode=restrict_mode)
                for k, v in d.items()
            }
        # no silent float/str -> int or truthiness -> bool coercion
        if cls is bool and not isinstance(d, bool):
            raise TypeError(f"expected bool, got {d!r}")
        if cls is int and (isinstance(d, bool) or not isinstance(d, int)):
            raise TypeError(f"expected int, got {d!r}")
        if isinstance(cls, type) and not isinstance(d, cls):
            return cls(d)
        return d

    if is_dataclass(d):
        return d
    if not isinstance(d, dict):
        raise TypeError(f"expected a mapping for {cls.__name__}, got {type(d).__name__}")

    hints = get_type_hints(cls)
    known = {f.name for f in fields(cls)}
    unknown = set(d) - known
    if unknown:
        raise KeyError(f"unknown keys for {cls.__name__}: {sorted(unknown)}")

    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        field_value = d.get(f.name)
        if field_value is not None:
            kwargs[f.name] = dict_to_dataclass(
                field_value, hints.get(f.name, Any), restrict_mode=restrict_mode)
        elif f.default_factory is not MISSING:
            kwargs[f.name] = f.default_factory()
        elif f.default is not MISSING:
            kwargs[f.name] = f.default
        elif restrict_mode:
            raise KeyError(f"required {f.name} is not provided")
        else:
            kwargs[f.name] = None
    return cls(**kwargs)


def load_yaml(config_path: str) -> Dict[str, Any]:
    with open(config_path) as f:
        data = yaml.load(f, ConfigLoader)
    logger.debug("loaded %s: %s", config_path, data)
    return data or {}


def load_config(config_path: str, cls: T) -> T:
    return dict_to_dataclass(load_yaml(config_path), cls)
