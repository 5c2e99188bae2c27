"""
Base model for request/response payloads.

Python attributes are snake_case; JSON keys are camelCase. Both spellings are
accepted on input so storage rows (snake_case columns) validate directly.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
