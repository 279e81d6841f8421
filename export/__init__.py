"""Export-Modul: Terminal-Darstellung der Pläne."""

from export.tui_renderer import render_section_rows, render_teacher_rows

__all__ = ["render_section_rows", "render_teacher_rows"]
