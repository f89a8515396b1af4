from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from flask import request
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from services.errors import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Upper bound for integer columns.
MAX_INT = 2**31 - 1


class ApiModel(BaseModel):
    """Request bodies use camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


class RecipeCreate(ApiModel):
    title: str = Field(..., min_length=1, json_schema_extra={"example": "Oat Bowl"})
    description: str = ""
    ingredients: str = Field("", json_schema_extra={"example": "oats\nmilk"})
    instructions: str = Field("", json_schema_extra={"example": "Mix.\nHeat."})
    meal_type: str = Field("", json_schema_extra={"example": "Breakfast"})
    prep_time: int = Field(..., gt=0, le=MAX_INT)
    servings: int = Field(..., gt=0, le=MAX_INT)
    user_id: Optional[int] = Field(None, gt=0, le=MAX_INT)
    is_saved: bool = False


class RecipeUpdate(ApiModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    ingredients: Optional[str] = None
    instructions: Optional[str] = None
    meal_type: Optional[str] = None
    prep_time: Optional[int] = Field(None, gt=0, le=MAX_INT)
    servings: Optional[int] = Field(None, gt=0, le=MAX_INT)
    user_id: Optional[int] = Field(None, gt=0, le=MAX_INT)
    is_saved: Optional[bool] = None


class GenerateRecipeRequest(ApiModel):
    prompt: str = Field(..., min_length=1)
    meal_type: Optional[str] = None
    main_ingredient: Optional[str] = None
    dietary: Optional[str] = None


class ChatMessageIn(ApiModel):
    role: Literal["user", "assistant"]
    content: str = ""
    recipe: Optional[Dict[str, Any]] = None


class ChatRequest(ApiModel):
    messages: List[ChatMessageIn]
    meal_type: Optional[str] = None
    main_ingredient: Optional[str] = None
    dietary: Optional[str] = None


class NewsletterRequest(ApiModel):
    email: EmailStr


class RecipeExport(ApiModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    ingredients: Optional[str] = None
    instructions: Optional[str] = None
    meal_type: Optional[str] = None
    prep_time: Optional[int] = None
    servings: Optional[int] = None


class EmailRecipeRequest(ApiModel):
    recipient_email: EmailStr
    recipe: RecipeExport


class WelcomeEmailRequest(ApiModel):
    email: EmailStr


class RegisterRequest(ApiModel):
    username: str = Field(..., min_length=3, max_length=80)
    password: str = Field(..., min_length=8)
    email: Optional[EmailStr] = None


class LoginRequest(ApiModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


def _field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]) or "body",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


def parse_body(schema: Type[SchemaT], message: str = "Invalid request body") -> SchemaT:
    """Validate the JSON body against ``schema`` or raise ValidationError."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(message, details=_field_errors(exc)) from exc
