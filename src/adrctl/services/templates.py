"""TemplateService — list and print the record body templates."""

from __future__ import annotations

from jinja2 import TemplateNotFound

from adrctl.services._helpers import failure
from adrctl.services.base import BaseService
from adrctl.services.result import ErrorCode, ServiceResult
from adrctl.services.telemetry import traced


class TemplateService(BaseService):
    """Read-only view of the templates ``new`` renders from.

    A file under ``.adrctl/templates/`` replaces the packaged template of
    the same name; both commands report which one is in effect.
    """

    @traced
    def list_templates(self) -> ServiceResult:
        templates = self._repo.templates
        overridden = templates.overridden()
        default = self.context.templates.format
        items = [
            {
                "name": name,
                "source": "override" if name in overridden else "builtin",
                "default": name == default,
            }
            for name in templates.names()
        ]
        return ServiceResult(ok=True, op="template_list", data={"count": len(items), "items": items})

    @traced
    def show_template(self, name: str) -> ServiceResult:
        op = "template_show"
        templates = self._repo.templates
        try:
            text, path = templates.source(name)
        except TemplateNotFound:
            return failure(
                op,
                ErrorCode.NOT_FOUND,
                f"No template named {name!r}",
                detail={"name": name, "available": templates.names()},
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "name": name,
                "source": "override" if name in templates.overridden() else "builtin",
                "path": str(path) if path else None,
                "text": text,
            },
        )
