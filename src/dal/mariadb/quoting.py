import re

from sqlglot import exp

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_$]{1,64}$")


def is_valid_identifier(name: object) -> bool:
    """Return True for unquoted MariaDB identifiers (letters, digits, ``_``, ``$``)."""
    return isinstance(name, str) and bool(IDENTIFIER_PATTERN.match(name)) and not name.isdigit()


def validate_identifier(name: object, kind: str = "identifier") -> str:
    """Return ``name`` unchanged or raise ValueError when it is not a plain identifier."""
    if not is_valid_identifier(name):
        raise ValueError(
            f"Invalid {kind} name {name!r}: use 1-64 letters, digits, '_' or '$'."
        )
    return name


def quote_identifier(name: object, kind: str = "identifier") -> str:
    """Validate ``name`` and render it as a backtick-quoted MariaDB identifier."""
    validated = validate_identifier(name, kind)
    return exp.to_identifier(validated, quoted=True).sql(dialect="mysql")
