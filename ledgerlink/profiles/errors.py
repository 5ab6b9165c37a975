"""Errors raised while applying a profile to statement data."""


class ProfileError(Exception):
    """
    Base class for data quality errors.

    These are recoverable by the user (fix the profile or skip the file)
    and never fatal for the process.
    """

    @property
    def message(self) -> str:
        return str(self)


class NumberParsingError(ProfileError):
    def __init__(self, input: str, target_format: str):
        self.input = input
        self.target_format = target_format
        super().__init__(
            f"Parsing this string: {input!r} with this number format: "
            f"{target_format} failed"
        )


class DateParsingError(ProfileError):
    def __init__(self, input: str, format: str):
        self.input = input
        self.format = format
        super().__init__(
            f"This format: {format!r} does not fit this date string: {input!r}"
        )


class ColumnWidthError(ProfileError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"The profile expects a minimum width of {expected} "
            f"but got a width of {actual}"
        )


class BuildRecordError(ProfileError):
    def __init__(self, missing_field: str):
        self.missing_field = missing_field
        super().__init__(f"Cannot build record, missing: {missing_field}")


class SchemaError(ValueError):
    """A profile definition is inconsistent (conflicting or missing columns)."""
