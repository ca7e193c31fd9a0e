"""JSON Schema validation for raw form fields.

This module provides a ValidationEngine that checks raw field values
against a JSON Schema before they are decoded, and SchemaDecoder, a
ready-made ``decode`` callable for FormStateMachine built on it.

A schema failure raises ValidationFailure carrying field -> messages, so
it flows through the classifier as a validation error and lands on the
individual fields exactly like a server-side 422 would.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar

import jsonschema
from jsonschema import Draft7Validator

from jetform.errors import FieldErrors, ValidationFailure
from jetform.types import FieldErrorCode

RequestT = TypeVar("RequestT")


@dataclass(frozen=True)
class FieldIssue:
    """A single field validation failure.

    Attributes:
        path: Dot-notation field path (e.g., "contact.email")
        code: Specific validation error code
        message: Human-readable error description
    """
    path: str
    code: FieldErrorCode
    message: str


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating raw fields against a JSON Schema.

    Attributes:
        is_valid: Whether the data passed all validation checks
        issues: Field-level validation failures (empty if valid)

    Examples:
        >>> schema = {'type': 'object', 'properties': {'name': {'type': 'string'}}, 'required': ['name']}
        >>> engine = ValidationEngine(schema)
        >>> engine.validate({'name': 'test'}).is_valid
        True
        >>> engine.validate({}).field_errors
        {'name': ["Field 'name' is required"]}
    """
    is_valid: bool
    issues: List[FieldIssue]

    @property
    def field_errors(self) -> FieldErrors:
        """Issues grouped by field path, in the order they were found."""
        grouped: FieldErrors = {}
        for issue in self.issues:
            grouped.setdefault(issue.path, []).append(issue.message)
        return grouped


class ValidationEngine:
    """JSON Schema validation engine for raw form fields.

    Wraps the jsonschema library and translates its errors into FieldIssue
    values with field paths, error codes and readable messages.

    Attributes:
        schema: The JSON Schema definition to validate against
        validator: The underlying jsonschema validator instance
    """

    def __init__(self, schema: Dict[str, Any]) -> None:
        """Initialize the validation engine with a JSON Schema.

        Raises:
            jsonschema.SchemaError: If the provided schema is invalid
        """
        self.schema = schema
        Draft7Validator.check_schema(schema)
        self.validator = Draft7Validator(schema, format_checker=Draft7Validator.FORMAT_CHECKER)
        self._field_validators: Dict[str, Draft7Validator] = {}

    def validate(self, data: Mapping[str, Any]) -> ValidationResult:
        errors = sorted(self.validator.iter_errors(dict(data)), key=lambda e: [str(p) for p in e.path])
        issues = [self._translate_error(error) for error in errors]
        return ValidationResult(is_valid=not issues, issues=issues)

    def validate_field(self, name: str, value: Any) -> List[FieldIssue]:
        """Validate a single top-level field, e.g. while the user types.

        The value is checked against the field's property schema only; other
        fields are ignored. A None value for a required field is reported as
        missing. Fields the schema does not describe always pass.

        Examples:
            >>> engine = ValidationEngine({
            ...     'type': 'object',
            ...     'properties': {'age': {'type': 'integer', 'minimum': 18}},
            ...     'required': ['age'],
            ... })
            >>> [issue.code.value for issue in engine.validate_field('age', 16)]
            ['invalid_value']
            >>> [issue.message for issue in engine.validate_field('age', None)]
            ["Field 'age' is required"]
        """
        if value is None and name in self.schema.get("required", ()):
            return [
                FieldIssue(
                    path=name,
                    code=FieldErrorCode.REQUIRED,
                    message=f"Field '{name}' is required",
                )
            ]

        validator = self._field_validator(name)
        if validator is None:
            return []

        issues = []
        for error in sorted(validator.iter_errors(value), key=lambda e: [str(p) for p in e.path]):
            error.path.appendleft(name)
            issues.append(self._translate_error(error))
        return issues

    def _field_validator(self, name: str) -> Optional[Draft7Validator]:
        if name not in self._field_validators:
            subschema = self.schema.get("properties", {}).get(name)
            if subschema is None:
                return None
            self._field_validators[name] = Draft7Validator(
                subschema, format_checker=Draft7Validator.FORMAT_CHECKER
            )
        return self._field_validators[name]

    def _translate_error(self, error: jsonschema.ValidationError) -> FieldIssue:
        """Translate a jsonschema ValidationError to a FieldIssue.

        Error mapping:
            - 'required' property errors -> REQUIRED
            - 'type' errors -> INVALID_TYPE
            - 'format' and 'pattern' errors -> INVALID_FORMAT
            - 'enum' or 'const' errors -> INVALID_VALUE
            - 'minLength' errors -> TOO_SHORT
            - 'maxLength' errors -> TOO_LONG
            - numeric bounds -> INVALID_VALUE
            - anything else -> CUSTOM
        """
        path = ".".join(str(p) for p in error.path)

        if error.validator == "required":
            # jsonschema reports the missing property on the parent object
            missing_prop = error.message.split("'")[1] if "'" in error.message else "field"
            full_path = f"{path}.{missing_prop}" if path else missing_prop
            return FieldIssue(
                path=full_path,
                code=FieldErrorCode.REQUIRED,
                message=f"Field '{full_path}' is required",
            )

        if error.validator == "type":
            return FieldIssue(
                path=path,
                code=FieldErrorCode.INVALID_TYPE,
                message=(
                    f"Field '{path}' has invalid type. Expected {error.validator_value}, "
                    f"got {type(error.instance).__name__}"
                ),
            )

        if error.validator == "format":
            return FieldIssue(
                path=path,
                code=FieldErrorCode.INVALID_FORMAT,
                message=f"Field '{path}' has invalid format. Expected format: {error.validator_value}",
            )

        if error.validator == "pattern":
            return FieldIssue(
                path=path,
                code=FieldErrorCode.INVALID_FORMAT,
                message=f"Field '{path}' does not match required pattern: {error.validator_value}",
            )

        if error.validator in ("enum", "const"):
            return FieldIssue(
                path=path,
                code=FieldErrorCode.INVALID_VALUE,
                message=f"Field '{path}' has invalid value. Must be one of: {error.validator_value}",
            )

        if error.validator == "minLength":
            actual_length = len(error.instance) if error.instance else 0
            return FieldIssue(
                path=path,
                code=FieldErrorCode.TOO_SHORT,
                message=(
                    f"Field '{path}' is too short. Minimum length: {error.validator_value}, "
                    f"got: {actual_length}"
                ),
            )

        if error.validator == "maxLength":
            actual_length = len(error.instance) if error.instance else 0
            return FieldIssue(
                path=path,
                code=FieldErrorCode.TOO_LONG,
                message=(
                    f"Field '{path}' is too long. Maximum length: {error.validator_value}, "
                    f"got: {actual_length}"
                ),
            )

        if error.validator in ("minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum"):
            return FieldIssue(
                path=path,
                code=FieldErrorCode.INVALID_VALUE,
                message=f"Field '{path}' violates {error.validator} constraint: {error.validator_value}",
            )

        return FieldIssue(
            path=path,
            code=FieldErrorCode.CUSTOM,
            message=f"Field '{path}' validation failed: {error.message}",
        )


class SchemaDecoder(Generic[RequestT]):
    """``decode`` callable that validates raw fields before building a request.

    Args:
        schema: JSON Schema the raw fields must satisfy
        factory: Builds the request from the validated fields; the fields
            dict itself is returned when omitted
        message: Form-level message attached to validation failures

    Examples:
        >>> decoder = SchemaDecoder({"type": "object", "required": ["email"]})
        >>> decoder({"email": "a@b.com"})
        {'email': 'a@b.com'}
        >>> try:
        ...     decoder({})
        ... except ValidationFailure as exc:
        ...     exc.field_errors
        {'email': ["Field 'email' is required"]}
    """

    def __init__(
        self,
        schema: Dict[str, Any],
        factory: Optional[Callable[[Dict[str, Any]], RequestT]] = None,
        message: Optional[str] = None,
    ):
        self.engine = ValidationEngine(schema)
        self.factory = factory
        self.message = message

    def __call__(self, raw_fields: Mapping[str, Any]) -> RequestT:
        fields = dict(raw_fields)
        result = self.engine.validate(fields)
        if not result.is_valid:
            raise ValidationFailure(result.field_errors, message=self.message)
        if self.factory is None:
            return fields  # type: ignore[return-value]
        return self.factory(fields)

    def validate_field(self, name: str, value: Any) -> List[str]:
        """Messages for a single field, empty when it is valid."""
        return [issue.message for issue in self.engine.validate_field(name, value)]


__all__ = [
    "FieldIssue",
    "ValidationEngine",
    "ValidationResult",
    "SchemaDecoder",
]
