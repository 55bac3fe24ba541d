"""Field codec between wire scalars and structured draft values.

- Tag lists travel as one ", "-delimited string (``desired_job_type``).
- "No maximum" salary is a sentinel magnitude; compare with ``is_unbounded``
  instead of the literal.
"""

from collections.abc import Iterable

TAG_DELIMITER = ", "

UNBOUNDED_SALARY = 999_999_999
"""Sentinel stored in desired_salary_max meaning "no maximum"."""

_NO_MAXIMUM_LABEL = "No maximum"


def encode_tag_list(tags: Iterable[str] | None) -> str | None:
    """Join tags into the wire string.

    Args:
        tags: Ordered tags, or None.

    Returns:
        Delimited string, or None for empty/absent input so the field can be
        omitted instead of sent as "".
    """
    if not tags:
        return None
    items = list(tags)
    if not items:
        return None
    return TAG_DELIMITER.join(items)


def decode_tag_list(value: str | None) -> list[str]:
    """Split the wire string into trimmed, non-empty tags, order preserved."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def is_unbounded(amount: int | None) -> bool:
    """True when a salary maximum is the "no maximum" sentinel."""
    return amount is not None and amount >= UNBOUNDED_SALARY


def describe_salary_max(amount: int | None) -> str | None:
    """Render a salary maximum for display.

    Returns:
        "No maximum" for the sentinel, a thousands-separated figure
        otherwise, or None when no maximum was given.
    """
    if amount is None:
        return None
    if is_unbounded(amount):
        return _NO_MAXIMUM_LABEL
    return f"{amount:,}"
