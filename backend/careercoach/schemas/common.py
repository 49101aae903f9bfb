"""Shared schema base classes."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys.

    The frontend speaks camelCase (resumeContext, tokensUsed); Python
    attributes stay snake_case.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
