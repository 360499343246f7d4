# walksense/validation.py
import re
import math

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class FieldErrors(dict):
    def add(self, field, message):
        self.setdefault(field, []).append(message)


def require_string(errors, data, field, label, max_length, required=True):
    value = data.get(field.rsplit('.', 1)[-1]) if isinstance(data, dict) else None
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            errors.add(field, f"The {label} field is required.")
        return None
    if not isinstance(value, str):
        errors.add(field, f"The {label} field must be a string.")
        return None
    value = value.strip()
    if len(value) > max_length:
        errors.add(field, f"The {label} field must not be greater than {max_length} characters.")
        return None
    return value


def is_valid_email(value):
    return isinstance(value, str) and len(value) <= 255 and bool(EMAIL_PATTERN.match(value))


def coerce_number(value):
    """Return ``value`` as a float, or None when it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def number_field(errors, data, field, required=False, minimum=None, maximum=None):
    value = data.get(field)
    if value is None:
        if required:
            errors.add(field, f"The {field} field is required.")
        return None
    number = coerce_number(value)
    if number is None:
        errors.add(field, f"The {field} field must be a number.")
        return None
    if minimum is not None and maximum is not None and not (minimum <= number <= maximum):
        errors.add(field, f"The {field} field must be between {minimum:g} and {maximum:g}.")
        return None
    if minimum is not None and number < minimum:
        errors.add(field, f"The {field} field must be at least {minimum:g}.")
        return None
    if maximum is not None and number > maximum:
        errors.add(field, f"The {field} field must not be greater than {maximum:g}.")
        return None
    return number
