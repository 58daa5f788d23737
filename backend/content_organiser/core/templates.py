"""
Template rendering utilities
"""
from datetime import date
from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

from content_organiser.core.config import get_settings
from content_organiser.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

# backend/content_organiser/core/templates.py -> project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent
DEFAULT_TEMPLATES_DIR = BASE_DIR / "frontend" / "templates"


def resolve_templates_dir(configured: Optional[str] = None) -> Path:
    """TEMPLATES_DIR when set, otherwise the source checkout's frontend/templates"""
    directory = Path(configured).expanduser().resolve() if configured else DEFAULT_TEMPLATES_DIR
    if not directory.is_dir():
        logger.error(
            "Templates directory not found; set TEMPLATES_DIR for installed deployments",
            extra={"templates_dir": str(directory)}
        )
    return directory


TEMPLATES_DIR = resolve_templates_dir(get_settings().templates_dir)

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def format_short_date(value):
    """'Jun 10' style label used on cards"""
    if not isinstance(value, date):
        return ""
    return f"{value.strftime('%b')} {value.day}"


templates.env.filters["short_date"] = format_short_date


def render_template(template_name: str, context: dict, request: Request, status_code: int = 200):
    """Render template with context"""
    return templates.TemplateResponse(request, template_name, context, status_code=status_code)
