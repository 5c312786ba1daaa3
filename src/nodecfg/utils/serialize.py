# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/utils/serialize.py

from dataclasses import is_dataclass, asdict
from datetime import timedelta
from typing import Any
from pydantic import BaseModel

from nodecfg.config.endpoint import Endpoint
from nodecfg.config.v1alpha1.models import format_duration


def to_jsonable(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return to_jsonable(obj.model_dump(by_alias=True, exclude_defaults=True))

    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))

    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]

    if isinstance(obj, Endpoint):
        return obj.format()

    if isinstance(obj, timedelta):
        return format_duration(obj)

    return obj
