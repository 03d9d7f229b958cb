"""Value wrapping hooks applied to every value shown in a diff entry."""

from __future__ import annotations

from typing import Any, Callable

from rich.style import Style

from .models import ValueStyle

VALUE_STYLE = Style(color="yellow")


def wrap_value(value: Any) -> str:
    """Surround a value with backticks."""
    return f"`{value}`"


def styled_value(value: Any) -> str:
    """Backtick-wrapped value in yellow, for terminals."""
    return VALUE_STYLE.render(wrap_value(value))


def value_formatter(style: ValueStyle) -> Callable[[Any], str]:
    if style == ValueStyle.ANSI:
        return styled_value
    return wrap_value
