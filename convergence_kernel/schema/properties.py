"""
Property Schema — declares and validates the typed fields of a resource kind.

Behavioral Contract:
- `define` builds one PropertyDefinition; `ResourceSchema` checks the table is
  consistent when the resource kind is declared.
- `validate` is pure and total: it returns a ResourceModel or raises a
  ValidationError subclass, nothing else.
- Properties are resolved in declaration order:
    1. absent value + default -> default
    2. absent value, no default, required -> MissingRequiredProperty
    3. regex constraint not matched -> ConstraintViolation
    4. equal_to constraint not matched -> ConstraintViolation
    5. name property without explicit value -> identity string
    6. integer outside minimum/maximum -> ConstraintViolation
  A name-derived value goes through the same type and constraint checks.
  A name property left unbound (empty identity) is MissingRequiredProperty.
- Messages never include the value of a sensitive property.
"""

import re
from typing import Any, Dict, List, Mapping, Optional

from convergence_kernel.errors import (
    ConstraintViolation,
    InvalidAction,
    MissingRequiredProperty,
    SchemaDefinitionError,
    UnknownProperty,
    ValidationError,
)
from convergence_kernel.models.resource import ResourceModel
from convergence_kernel.models.schema import PropertyDefinition, PropertyType


def define(name: str, type: PropertyType = PropertyType.STRING, **constraints: Any) -> PropertyDefinition:
    """Declare a property. `constraints` maps onto PropertyDefinition fields."""
    definition = PropertyDefinition(name=name, type=PropertyType(type), **constraints)
    if definition.type == PropertyType.ENUM and not definition.equal_to:
        raise SchemaDefinitionError(f"Enum property '{name}' needs an equal_to list.")
    if definition.name_property and definition.has_default:
        raise SchemaDefinitionError(f"Name property '{name}' cannot also declare a default.")
    bounded = definition.minimum is not None or definition.maximum is not None
    if bounded and definition.type != PropertyType.INTEGER:
        raise SchemaDefinitionError(f"Only integer properties take minimum/maximum, not '{name}'.")
    if definition.regex is not None:
        try:
            re.compile(definition.regex)
        except re.error as exc:
            raise SchemaDefinitionError(f"Property '{name}' has an invalid regex: {exc}") from exc
    return definition


class ResourceSchema:
    """The property table and action set of one resource kind."""

    def __init__(
        self,
        kind: str,
        properties: List[PropertyDefinition],
        actions: List[str],
        default_action: Optional[str] = None,
    ):
        self.kind = kind
        self.properties = list(properties)
        self.actions = list(actions)
        self.default_action = default_action or (self.actions[0] if self.actions else None)
        self._check_definitions()

    def _check_definitions(self) -> None:
        if not self.actions:
            raise SchemaDefinitionError(f"Resource kind '{self.kind}' declares no actions.")
        if self.default_action not in self.actions:
            raise SchemaDefinitionError(
                f"Default action '{self.default_action}' of '{self.kind}' is not a declared action."
            )

        names = [p.name for p in self.properties]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise SchemaDefinitionError(
                f"Resource kind '{self.kind}' declares duplicate properties: {', '.join(duplicates)}."
            )

        name_properties = [p.name for p in self.properties if p.name_property]
        if len(name_properties) > 1:
            raise SchemaDefinitionError(
                f"Resource kind '{self.kind}' declares more than one name property: "
                f"{', '.join(name_properties)}."
            )

        for definition in self.properties:
            unknown = [a for a in (definition.required_for or []) if a not in self.actions]
            if unknown:
                raise SchemaDefinitionError(
                    f"Property '{definition.name}' is required for undeclared action(s): {', '.join(unknown)}."
                )
            if definition.has_default:
                # A default that fails its own constraints is a declaration bug.
                try:
                    _check_value(definition, _coerce(definition, definition.default))
                except ConstraintViolation as exc:
                    raise SchemaDefinitionError(
                        f"Default of '{self.kind}.{definition.name}' is invalid: {exc.reason}"
                    ) from exc

    @property
    def name_property(self) -> Optional[PropertyDefinition]:
        return next((p for p in self.properties if p.name_property), None)

    def get(self, name: str) -> Optional[PropertyDefinition]:
        return next((p for p in self.properties if p.name == name), None)

    def describe(self) -> dict:
        return {
            "kind": self.kind,
            "actions": self.actions,
            "default_action": self.default_action,
            "properties": [p.model_dump(mode="json") for p in self.properties],
        }


def validate(
    schema: ResourceSchema,
    identity: str,
    raw_values: Optional[Mapping[str, Any]] = None,
    action: Optional[str] = None,
) -> ResourceModel:
    """Turn raw caller input into an immutable ResourceModel."""
    if not isinstance(identity, str):
        raise ValidationError(f"Resource identity must be a string, got {type(identity).__name__}.")
    raw_values = dict(raw_values or {})

    selected = schema.default_action if action is None else _normalize_symbol(action)
    if selected not in schema.actions:
        raise InvalidAction(str(action), schema.kind, schema.actions)

    for name in raw_values:
        if schema.get(name) is None:
            raise UnknownProperty(name, schema.kind)

    bound: Dict[str, Any] = {}
    for definition in schema.properties:
        value = raw_values.get(definition.name)

        if value is None and definition.has_default:
            value = definition.default

        if value is None and definition.name_property and identity:
            value = identity

        if value is None:
            # A name property with an empty identity has nothing to fall back on.
            required = definition.required or selected in (definition.required_for or [])
            if required or definition.name_property:
                raise MissingRequiredProperty(definition.name)
            bound[definition.name] = None
            continue

        value = _coerce(definition, value)
        _check_value(definition, value)
        bound[definition.name] = value

    return ResourceModel(
        kind=schema.kind,
        identity=identity,
        action=selected,
        properties=bound,
        sensitive_properties=[p.name for p in schema.properties if p.sensitive],
    )


def _normalize_symbol(value: str) -> str:
    """Recipes write enum values as symbols (":delayed")."""
    return value[1:] if isinstance(value, str) and value.startswith(":") else value


def _describe_value(definition: PropertyDefinition, value: Any) -> str:
    return "value" if definition.sensitive else repr(value)


def _coerce(definition: PropertyDefinition, value: Any) -> Any:
    expected = definition.type

    if expected == PropertyType.BOOL:
        if isinstance(value, bool):
            return value
    elif expected == PropertyType.INTEGER:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif expected == PropertyType.ENUM:
        if isinstance(value, str):
            return _normalize_symbol(value)
    elif isinstance(value, str):
        return value

    raise ConstraintViolation(
        definition.name,
        definition.validation_message
        or f"{_describe_value(definition, value)} is not of type {expected.value}",
    )


def _check_value(definition: PropertyDefinition, value: Any) -> None:
    if definition.regex is not None and not re.search(definition.regex, str(value)):
        raise ConstraintViolation(
            definition.name,
            definition.validation_message
            or f"{_describe_value(definition, value)} does not match /{definition.regex}/",
        )

    if definition.minimum is not None and value < definition.minimum:
        raise ConstraintViolation(
            definition.name,
            definition.validation_message
            or f"{_describe_value(definition, value)} is below the minimum of {definition.minimum}",
        )
    if definition.maximum is not None and value > definition.maximum:
        raise ConstraintViolation(
            definition.name,
            definition.validation_message
            or f"{_describe_value(definition, value)} is above the maximum of {definition.maximum}",
        )

    if definition.equal_to is not None:
        allowed = [_normalize_symbol(v) for v in definition.equal_to]
        if value not in allowed:
            raise ConstraintViolation(
                definition.name,
                definition.validation_message
                or f"{_describe_value(definition, value)} is not one of {allowed}",
            )
