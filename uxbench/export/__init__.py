from .markdown import render_markdown
from .report_export import export_averaged, export_filename

__all__ = ["export_averaged", "export_filename", "render_markdown"]
