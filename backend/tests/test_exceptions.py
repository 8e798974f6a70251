from slotcraft.core.exceptions import (
    AppError,
    ConfigurationError,
    ConstraintValidationError,
    DataQualityError,
    GenerationError,
    ResourceNotFoundError,
)


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}


def test_status_codes_per_error_kind():
    assert ConfigurationError("no rooms").status_code == 400
    assert ConstraintValidationError("bad pin").status_code == 422
    assert DataQualityError("unknown room").status_code == 422
    assert GenerationError("generator down").status_code == 502
    assert ResourceNotFoundError("Fixed class", "fx-1").status_code == 404


def test_generation_error_keeps_raw_message_and_adds_guidance():
    err = GenerationError("The generator reported an error", details={"raw": "quota exceeded"})
    assert err.details["raw"] == "quota exceeded"
    assert err.details["guidance"]
    assert isinstance(err, AppError)


def test_not_found_message_names_the_resource():
    err = ResourceNotFoundError("Custom constraint", "cc-1")
    assert err.message == "Custom constraint with id cc-1 not found"
