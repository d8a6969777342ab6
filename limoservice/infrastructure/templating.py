"""Jinja2 environments for transactional emails and public pages."""

from pathlib import Path

from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

email_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR / "emails"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)

page_templates = Jinja2Templates(directory=str(TEMPLATES_DIR / "pages"))


def render_email(template_name: str, **context) -> str:
    return email_env.get_template(template_name).render(**context)
