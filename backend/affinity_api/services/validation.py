"""Field rules for account data.

Each check appends ``{"field", "message"}`` entries so callers can report all
violations together.
"""

from typing import Dict, List, Optional

from email_validator import EmailNotValidError, validate_email

from affinity_api.errors import ValidationError

USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6
# passlib rejects anything over 4096 characters
PASSWORD_MAX_LENGTH = 128
BIO_MAX_LENGTH = 200

FieldErrors = List[Dict[str, str]]


def is_valid_email(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def check_username(value: Optional[str], errors: FieldErrors) -> None:
    if value is None or len(value.strip()) < USERNAME_MIN_LENGTH:
        errors.append({"field": "username", "message": f"Username must be at least {USERNAME_MIN_LENGTH} characters"})


def check_email(value: Optional[str], errors: FieldErrors) -> None:
    if not is_valid_email(value):
        errors.append({"field": "email", "message": "Please enter a valid email"})


def check_password(value: Optional[str], errors: FieldErrors) -> None:
    if value is None or len(value) < PASSWORD_MIN_LENGTH:
        errors.append({"field": "password", "message": f"Password must be at least {PASSWORD_MIN_LENGTH} characters"})
    elif len(value) > PASSWORD_MAX_LENGTH:
        errors.append({"field": "password", "message": f"Password must be at most {PASSWORD_MAX_LENGTH} characters"})


def check_bio(value: Optional[str], errors: FieldErrors) -> None:
    if value is not None and len(value) > BIO_MAX_LENGTH:
        errors.append({"field": "bio", "message": f"Bio must be {BIO_MAX_LENGTH} characters or less"})


def validate_registration(username: Optional[str], email: Optional[str], password: Optional[str]) -> None:
    errors: FieldErrors = []
    check_username(username, errors)
    check_email(email, errors)
    check_password(password, errors)
    if errors:
        raise ValidationError(errors=errors)


def validate_login(email: Optional[str], password: Optional[str]) -> None:
    errors: FieldErrors = []
    check_email(email, errors)
    if not password:
        errors.append({"field": "password", "message": "Password is required"})
    if errors:
        raise ValidationError(errors=errors)
