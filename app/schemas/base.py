from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every API schema.

    The public API speaks camelCase (isFreelancer, rolesSelected, ...) while the
    models stay snake_case. Requests accept either spelling, responses are
    always serialised with the camelCase aliases.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    success: bool = True
    msg: str
