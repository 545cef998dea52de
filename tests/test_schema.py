"""Tests for the Property Schema."""

import pytest

from convergence_kernel.errors import (
    ConstraintViolation,
    InvalidAction,
    MissingRequiredProperty,
    SchemaDefinitionError,
    UnknownProperty,
    ValidationError,
)
from convergence_kernel.models.schema import PropertyType
from convergence_kernel.resources import swap_file, windows_ad_join
from convergence_kernel.schema.properties import ResourceSchema, define, validate


def _join_values(**overrides) -> dict:
    values = {
        "domain_user": "CORP\\joiner",
        "domain_password": "s3cret!",
    }
    values.update(overrides)
    return values


class TestDefine:
    def test_enum_requires_allowed_values(self):
        with pytest.raises(SchemaDefinitionError):
            define("reboot", PropertyType.ENUM)

    def test_name_property_cannot_have_default(self):
        with pytest.raises(SchemaDefinitionError):
            define("path", name_property=True, default="/swapfile")

    def test_invalid_regex_rejected(self):
        with pytest.raises(SchemaDefinitionError):
            define("name", regex="(unclosed")

    def test_only_one_name_property(self):
        with pytest.raises(SchemaDefinitionError):
            ResourceSchema(
                kind="broken",
                properties=[
                    define("a", name_property=True),
                    define("b", name_property=True),
                ],
                actions=["run"],
            )

    def test_default_must_satisfy_constraints(self):
        with pytest.raises(SchemaDefinitionError):
            ResourceSchema(
                kind="broken",
                properties=[define("mode", PropertyType.ENUM, equal_to=["a", "b"], default="c")],
                actions=["run"],
            )

    def test_default_action_must_be_declared(self):
        with pytest.raises(SchemaDefinitionError):
            ResourceSchema(kind="broken", properties=[], actions=["run"], default_action="walk")

    def test_first_action_is_default(self):
        schema = ResourceSchema(kind="simple", properties=[], actions=["run", "stop"])
        assert schema.default_action == "run"


class TestValidateDomainJoin:
    def test_name_property_defaults_to_identity(self):
        model = validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values())
        assert model.get("domain_name") == "corp.example.com"
        assert model.action == "join"

    def test_explicit_value_beats_identity(self):
        model = validate(
            windows_ad_join.SCHEMA,
            "join corp",
            _join_values(domain_name="corp.example.com"),
        )
        assert model.get("domain_name") == "corp.example.com"
        assert model.identity == "join corp"

    def test_defaults_applied(self):
        model = validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values())
        assert model.get("reboot") == "immediate"
        assert model.get("sensitive") is True
        assert model.is_bound("ou_path") is False

    def test_missing_required_property_named(self):
        values = _join_values()
        del values["domain_password"]

        with pytest.raises(MissingRequiredProperty) as exc_info:
            validate(windows_ad_join.SCHEMA, "corp.example.com", values)

        assert exc_info.value.name == "domain_password"

    def test_first_missing_property_in_declaration_order(self):
        with pytest.raises(MissingRequiredProperty) as exc_info:
            validate(windows_ad_join.SCHEMA, "corp.example.com", {})
        assert exc_info.value.name == "domain_user"

    def test_regex_constraint(self):
        with pytest.raises(ConstraintViolation) as exc_info:
            validate(windows_ad_join.SCHEMA, "corp", _join_values())

        assert exc_info.value.name == "domain_name"
        assert "FQDN" in exc_info.value.reason

    def test_enum_constraint(self):
        with pytest.raises(ConstraintViolation) as exc_info:
            validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values(reboot="later"))
        assert exc_info.value.name == "reboot"

    def test_enum_accepts_symbol_form(self):
        model = validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values(reboot=":delayed"))
        assert model.get("reboot") == "delayed"

    def test_type_mismatch_is_constraint_violation(self):
        with pytest.raises(ConstraintViolation):
            validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values(sensitive="yes"))

    def test_sensitive_value_never_in_message(self):
        with pytest.raises(ConstraintViolation) as exc_info:
            validate(
                windows_ad_join.SCHEMA,
                "corp.example.com",
                _join_values(domain_password=12345678),
            )
        assert "12345678" not in str(exc_info.value)

    def test_unknown_property(self):
        with pytest.raises(UnknownProperty):
            validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values(color="blue"))

    def test_redacted_properties(self):
        model = validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values())
        redacted = model.redacted_properties()
        assert "s3cret!" not in str(redacted)
        assert redacted["domain_user"] == "CORP\\joiner"

    def test_deterministic(self):
        first = validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values())
        second = validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values())
        assert first == second

    def test_model_is_immutable(self):
        model = validate(windows_ad_join.SCHEMA, "corp.example.com", _join_values())
        with pytest.raises(Exception):
            model.action = "leave"


class TestValidateSwapFile:
    def test_path_defaults_to_identity(self):
        model = validate(swap_file.SCHEMA, "/swapfile", {"size": 1024})
        assert model.get("path") == "/swapfile"

    def test_default_action_is_create(self):
        model = validate(swap_file.SCHEMA, "/swapfile", {"size": 1024})
        assert model.action == "create"

    def test_supported_actions(self):
        assert validate(swap_file.SCHEMA, "/swapfile", {"size": 1024}, action="create").action == "create"
        assert validate(swap_file.SCHEMA, "/swapfile", {}, action="remove").action == "remove"

    def test_delete_is_invalid_action(self):
        with pytest.raises(InvalidAction) as exc_info:
            validate(swap_file.SCHEMA, "/swapfile", {"size": 1024}, action="delete")

        assert exc_info.value.allowed == ["create", "remove"]
        assert isinstance(exc_info.value, ValidationError)

    def test_invalid_action_checked_before_properties(self):
        with pytest.raises(InvalidAction):
            validate(swap_file.SCHEMA, "/swapfile", {"bogus": 1}, action="delete")

    def test_size_required_for_create_only(self):
        with pytest.raises(MissingRequiredProperty) as exc_info:
            validate(swap_file.SCHEMA, "/swapfile", {}, action="create")
        assert exc_info.value.name == "size"

        model = validate(swap_file.SCHEMA, "/swapfile", {}, action="remove")
        assert model.get("size") is None

    def test_integer_rejects_bool(self):
        with pytest.raises(ConstraintViolation):
            validate(swap_file.SCHEMA, "/swapfile", {"size": True})

    def test_relative_path_rejected(self):
        with pytest.raises(ConstraintViolation) as exc_info:
            validate(swap_file.SCHEMA, "swapfile", {"size": 1024})
        assert exc_info.value.name == "path"
        assert "absolute" in exc_info.value.reason

    def test_size_must_be_positive(self):
        for size in (0, -5):
            with pytest.raises(ConstraintViolation) as exc_info:
                validate(swap_file.SCHEMA, "/swapfile", {"size": size})
            assert exc_info.value.name == "size"

    def test_swappiness_range(self):
        assert validate(swap_file.SCHEMA, "/swapfile", {"size": 1, "swappiness": 0}).get("swappiness") == 0
        assert validate(swap_file.SCHEMA, "/swapfile", {"size": 1, "swappiness": 200}).get("swappiness") == 200
        with pytest.raises(ConstraintViolation):
            validate(swap_file.SCHEMA, "/swapfile", {"size": 1, "swappiness": 201})
        with pytest.raises(ConstraintViolation):
            validate(swap_file.SCHEMA, "/swapfile", {"size": 1, "swappiness": -1})


class TestEmptyIdentity:
    def test_domain_join_needs_a_domain_name(self):
        with pytest.raises(MissingRequiredProperty) as exc_info:
            validate(windows_ad_join.SCHEMA, "", _join_values())
        assert exc_info.value.name == "domain_name"

    def test_domain_join_explicit_name_is_enough(self):
        model = validate(windows_ad_join.SCHEMA, "", _join_values(domain_name="corp.example.com"))
        assert model.get("domain_name") == "corp.example.com"

    def test_swap_file_needs_a_path(self):
        for action, values in (("create", {"size": 10}), ("remove", {})):
            with pytest.raises(MissingRequiredProperty) as exc_info:
                validate(swap_file.SCHEMA, "", values, action=action)
            assert exc_info.value.name == "path"


class TestIntegerBounds:
    def test_bounds_only_on_integers(self):
        with pytest.raises(SchemaDefinitionError):
            define("name", minimum=1)

    def test_default_outside_bounds_rejected(self):
        with pytest.raises(SchemaDefinitionError):
            ResourceSchema(
                kind="broken",
                properties=[define("count", PropertyType.INTEGER, minimum=1, default=0)],
                actions=["run"],
            )

    def test_bound_violation_hides_sensitive_value(self):
        schema = ResourceSchema(
            kind="secret_number",
            properties=[define("pin", PropertyType.INTEGER, minimum=1000, sensitive=True)],
            actions=["run"],
        )
        with pytest.raises(ConstraintViolation) as exc_info:
            validate(schema, "x", {"pin": 42})
        assert "42" not in str(exc_info.value)
