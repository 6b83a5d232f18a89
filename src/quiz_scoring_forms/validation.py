"""Validation and casting of single form field values."""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .models import FieldState, FormField

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\Z")
PHONE_REGEX = re.compile(r"^\+?[0-9 \-()]+\Z")
NAME_REGEX = re.compile(r"^[a-zA-Z .,]+\Z")
DIGITS_REGEX = re.compile(r"^[0-9]+\Z")
NUMERIC_REGEX = re.compile(r"^\s*[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?\s*\Z")

# Cyrillic blocks, then Han (radicals, ideographic marks, unified and
# compatibility ideographs, supplementary planes).
FOREIGN_SCRIPT_RANGES = [
    (0x0400, 0x052F),
    (0x1C80, 0x1C8F),
    (0x2DE0, 0x2DFF),
    (0xA640, 0xA69F),
    (0x2E80, 0x2FDF),
    (0x3005, 0x3005),
    (0x3007, 0x3007),
    (0x3021, 0x3029),
    (0x3038, 0x303B),
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFAFF),
    (0x20000, 0x3134F),
]
FOREIGN_SCRIPT_REGEX = re.compile(
    "[" + "".join(f"{chr(start)}-{chr(end)}" for start, end in FOREIGN_SCRIPT_RANGES) + "]"
)


def is_ascii(value: str) -> bool:
    return value.isascii()


def has_cyrillic_or_han(value: str) -> bool:
    return FOREIGN_SCRIPT_REGEX.search(value) is not None


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_REGEX.match(email)) and not has_cyrillic_or_han(email)


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_REGEX.match(phone)) and not has_cyrillic_or_han(phone)


def is_valid_name(name: str) -> bool:
    return bool(NAME_REGEX.match(name))


def is_text_valid(text: str) -> bool:
    """Free text passes unless it contains Cyrillic or Han characters."""
    return not has_cyrillic_or_han(text)


class FailureReason(Enum):
    REQUIRED = "required"
    TYPE = "type"
    CONSTRAINT = "constraint"
    FORMAT = "format"


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    value: Any = None
    reason: Optional[FailureReason] = None

    @classmethod
    def valid(cls, value: Any) -> "ValidationResult":
        return cls(ok=True, value=value)

    @classmethod
    def invalid(cls, reason: FailureReason) -> "ValidationResult":
        return cls(ok=False, reason=reason)


class FieldValidator:
    """Validates raw input against a field's declared type and constraints.

    Checks run in order and stop at the first failure:

    1. required: ``None`` or ``""`` is rejected for required fields
    2. cast: the raw value is coerced to the field's data type
    3. constraints: string length or numeric value within min/max
    4. data type: ASCII-only and format rules (email, phone, name), and the
       Cyrillic/Han text heuristic where the field asks for it

    An empty value on an optional field is accepted as "no value".
    Bad input never raises; it produces an invalid result.
    """

    def validate(
        self,
        form_field: FormField,
        raw_value: Any,
        state: Optional[FieldState] = None,
    ) -> ValidationResult:
        if raw_value is None or raw_value == "":
            if form_field.required:
                return ValidationResult.invalid(FailureReason.REQUIRED)
            return ValidationResult.valid(None)

        cast_value = self.cast(form_field.data_type, raw_value)
        if cast_value is None:
            logger.debug("Field %s: cannot cast to %s", form_field.id, form_field.data_type)
            return ValidationResult.invalid(FailureReason.TYPE)

        if not self.check_constraints(form_field, cast_value):
            logger.debug("Field %s: value outside bounds", form_field.id)
            return ValidationResult.invalid(FailureReason.CONSTRAINT)

        if not self.check_data_type(form_field, cast_value):
            logger.debug("Field %s: value fails %s format", form_field.id, form_field.data_type)
            return ValidationResult.invalid(FailureReason.FORMAT)

        if state is not None:
            cast_value = state.set_value(cast_value)

        return ValidationResult.valid(cast_value)

    @staticmethod
    def cast(data_type: str, value: Any) -> Any:
        """Coerce a raw value into ``data_type``; None means it cannot be."""
        is_int = isinstance(value, int) and not isinstance(value, bool)

        match data_type:
            case "string" | "email" | "phone" | "name":
                return value if isinstance(value, str) else None

            case "int":
                if is_int:
                    return value
                if isinstance(value, str) and DIGITS_REGEX.match(value):
                    return int(value)
                return None

            case "float":
                if isinstance(value, float):
                    return value
                if is_int:
                    return float(value)
                if isinstance(value, str) and NUMERIC_REGEX.match(value):
                    return float(value)
                return None

            case "number":
                if is_int or isinstance(value, float):
                    return value
                if isinstance(value, str) and NUMERIC_REGEX.match(value):
                    number = float(value)
                    if "." in value or not number.is_integer():
                        return number
                    return int(number)
                return None

            case "bool":
                if isinstance(value, bool):
                    return value
                if isinstance(value, str):
                    lowered = value.lower()
                    if lowered in ("true", "1"):
                        return True
                    if lowered in ("false", "0"):
                        return False
                if is_int and value in (0, 1):
                    return value == 1
                return None

            case _:
                return None

    @staticmethod
    def check_constraints(form_field: FormField, value: Any) -> bool:
        if value is None or isinstance(value, bool):
            return True

        if isinstance(value, str):
            measured = len(value)
        elif isinstance(value, (int, float)):
            measured = value
        else:
            return True

        if form_field.min_length is not None and measured < form_field.min_length:
            return False
        if form_field.max_length is not None and measured > form_field.max_length:
            return False
        return True

    @staticmethod
    def check_data_type(form_field: FormField, value: Any) -> bool:
        if value is None:
            return True

        string_value = str(value)

        if form_field.ascii_only and not is_ascii(string_value):
            return False

        match form_field.data_type:
            case "email":
                valid = is_valid_email(string_value)
            case "phone":
                valid = is_valid_phone(string_value)
            case "name":
                valid = is_valid_name(string_value)
            case _:
                valid = True

        if valid and form_field.reject_foreign_scripts:
            valid = is_text_valid(string_value)

        return valid
