"""
Snippetbox — Form Schemas
==========================

What:  Pydantic models validating the HTML form submissions.
Why:   An invalid form is not an error response: the page is rendered again
       with the submitted values and one message per offending field. The
       models therefore collect messages instead of aborting the request.
How:   `parse_form()` validates the raw form fields and returns the validated
       model (or None) plus a FormState the templates read from.

Messages are raised as PydanticCustomError so they reach the page verbatim
("This field cannot be blank"), without pydantic's "Value error, " prefix.
"""

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticCustomError

# What: Pragmatic email shape check (W3C's HTML5 email input pattern)
EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

PERMITTED_EXPIRES = ("1", "7", "365")


def _not_blank(value: str) -> str:
    if not value.strip():
        raise PydanticCustomError("blank", "This field cannot be blank")
    return value


def _max_chars(value: str, n: int) -> str:
    if len(value) > n:
        raise PydanticCustomError(
            "max_chars",
            "This field cannot be more than {n} characters long",
            {"n": n},
        )
    return value


def _min_chars(value: str, n: int) -> str:
    if len(value) < n:
        raise PydanticCustomError(
            "min_chars",
            "This field must be at least {n} characters long",
            {"n": n},
        )
    return value


def _max_bytes(value: str, n: int) -> str:
    # bcrypt only accepts passwords up to 72 bytes
    if len(value.encode("utf-8")) > n:
        raise PydanticCustomError(
            "max_bytes",
            "This field cannot be more than {n} bytes long",
            {"n": n},
        )
    return value


def _email(value: str) -> str:
    if not EMAIL_RX.match(value):
        raise PydanticCustomError("email", "This field must be a valid email address")
    return value


class HTMLForm(BaseModel):
    """Base for form models. Fields listed in `redisplay_exclude` are never echoed back."""

    model_config = ConfigDict(validate_default=True)

    redisplay_exclude: ClassVar[FrozenSet[str]] = frozenset()


class SnippetCreateForm(HTMLForm):
    title: str = ""
    content: str = ""
    expires: int = 365

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _max_chars(_not_blank(v), 100)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("expires", mode="before")
    @classmethod
    def validate_expires(cls, v: Any) -> int:
        if str(v) not in PERMITTED_EXPIRES:
            raise PydanticCustomError("permitted_value", "This field must equal 1, 7 or 365")
        return int(v)


class UserSignupForm(HTMLForm):
    redisplay_exclude: ClassVar[FrozenSet[str]] = frozenset({"password"})

    name: str = ""
    email: str = ""
    password: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _email(_not_blank(v))

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _max_bytes(_min_chars(_not_blank(v), 8), 72)


class UserLoginForm(HTMLForm):
    redisplay_exclude: ClassVar[FrozenSet[str]] = frozenset({"password"})

    email: str = ""
    password: str = ""

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _email(_not_blank(v))

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _not_blank(v)


@dataclass
class FormState:
    """What a form page needs to redisplay a submission."""

    values: Dict[str, str] = field(default_factory=dict)
    field_errors: Dict[str, str] = field(default_factory=dict)
    non_field_errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.field_errors and not self.non_field_errors

    def add_field_error(self, name: str, message: str) -> None:
        self.field_errors.setdefault(name, message)

    def add_non_field_error(self, message: str) -> None:
        self.non_field_errors.append(message)


F = TypeVar("F", bound=HTMLForm)


def parse_form(form_cls: Type[F], data: Mapping[str, Any]) -> Tuple[Optional[F], FormState]:
    """
    Validate submitted fields against `form_cls`.

    Returns:
        (model, state): model is None when any field failed; state always
        carries the submitted values (minus excluded ones) for redisplay.
    """
    raw = {}
    for name in form_cls.model_fields:
        value = data.get(name)
        if value is not None:
            raw[name] = value

    state = FormState(
        values={
            name: value
            for name, value in raw.items()
            if name not in form_cls.redisplay_exclude and isinstance(value, str)
        }
    )

    try:
        return form_cls.model_validate(raw), state
    except ValidationError as e:
        for error in e.errors():
            name = str(error["loc"][0]) if error["loc"] else "__all__"
            state.add_field_error(name, error["msg"])
        return None, state
