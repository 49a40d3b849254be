"""Utility functions."""

from .terminal import (
    choose_index,
    create_table,
    describe_status,
    format_result_color,
    render_banner,
    render_output,
    render_problem,
    render_verdict,
)

__all__ = [
    "choose_index",
    "create_table",
    "describe_status",
    "format_result_color",
    "render_banner",
    "render_output",
    "render_problem",
    "render_verdict",
]
