"""Request body parsing for routes that authorize before reading the body.

FastAPI validates a declared body parameter before the handler runs,
so a malformed body would be reported ahead of a role refusal. Routes
that must refuse the wrong role first take the raw Request and call
parse_body() after their role check.
"""

from typing import TypeVar

import pydantic
from fastapi import Request

from recordgate.errors import ValidationError

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    """Validate the JSON request body into `model`. An empty body is `{}`."""
    raw = await request.body()
    try:
        return model.model_validate_json(raw or b"{}")
    except pydantic.ValidationError:
        raise ValidationError("Malformed request body")
