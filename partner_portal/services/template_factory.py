"""
TemplateFactory — renders template schemas and registers them with DocuSeal.

``create_template`` is all-or-error for one type. ``create_all`` runs every
type independently inside its own savepoint and reports per-type results,
so one failing type never blocks the others.
"""
from dataclasses import dataclass
from html import escape
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from partner_portal.core.config import settings
from partner_portal.core.logging import get_logger
from partner_portal.integrations.docuseal import DocuSealClient, DocuSealError
from partner_portal.repositories.document_repo import TemplateRepository
from partner_portal.services.template_schemas import (
    ALL_TEMPLATE_TYPES,
    FieldKind,
    TemplateError,
    TemplateField,
    TemplateSchema,
    get_template_schema,
)

logger = get_logger(__name__)

_CSS = (
    "body{font-family:Helvetica,Arial,sans-serif;font-size:12px;color:#222;margin:40px}"
    ".header{border-bottom:2px solid #0EA5E9;margin-bottom:20px;padding-bottom:10px}"
    ".logo{font-size:22px;font-weight:bold;color:#0EA5E9}"
    ".title{font-size:16px;font-weight:bold;margin-top:6px}"
    ".section{margin:16px 0}"
    ".section-title{font-weight:bold;border-bottom:1px solid #ddd;margin-bottom:8px}"
    ".field{margin:6px 0}"
    "label{display:inline-block;min-width:180px}"
)

_FIELD_WIDTH = {
    FieldKind.TEXT: "220px",
    FieldKind.DATE: "130px",
    FieldKind.NUMBER: "90px",
    FieldKind.SIGNATURE: "220px;height:60px",
    FieldKind.SELECT: "150px",
    FieldKind.TEXTAREA: "100%;height:80px",
}


def render_field(field: TemplateField) -> str:
    tag = f"{field.kind.value}-field"
    attrs = (
        f'name="{escape(field.name)}" role="{escape(field.role)}" '
        f'required="{"true" if field.required else "false"}" '
        f'style="width:{_FIELD_WIDTH[field.kind]};"'
    )
    inner = "".join(f"<option>{escape(option)}</option>" for option in field.options)
    return (
        f'<div class="field"><label>{escape(field.display_label)}</label>'
        f"<{tag} {attrs}>{inner}</{tag}></div>"
    )


def render_template_html(schema: TemplateSchema, company_name: Optional[str] = None) -> str:
    """HTML body with DocuSeal field tags, one block per section."""
    company = escape(company_name or settings.COMPANY_NAME)
    parts = [
        f"<!DOCTYPE html><html><head><style>{_CSS}</style></head><body>",
        f'<div class="header"><div class="logo">{company}</div>'
        f'<div class="title">{escape(schema.title)}</div></div>',
    ]
    for section in schema.sections:
        parts.append(f'<div class="section"><div class="section-title">{escape(section.title)}</div>')
        parts.extend(render_field(f) for f in section.fields)
        parts.append("</div>")
    parts.append("</body></html>")
    return "".join(parts)


@dataclass
class TemplateResult:
    template_type: str
    success: bool
    external_id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    error: Optional[str] = None


class TemplateFactory:
    def __init__(self, template_repo: TemplateRepository, client: DocuSealClient):
        self.repo = template_repo
        self.client = client

    async def create_template(self, template_type: str) -> TemplateResult:
        """
        Register one template with DocuSeal and upsert the local record.

        Errors (unknown type, DocuSeal failure, database failure) propagate.
        """
        schema = get_template_schema(template_type)
        html = render_template_html(schema)
        remote = await self.client.create_html_template(
            name=schema.name, html=html, folder_name=settings.DOCUSEAL_FOLDER_NAME
        )
        if not isinstance(remote, dict) or remote.get("id") is None:
            raise DocuSealError(f"DocuSeal returned no template id for {template_type}")

        external_id = str(remote["id"])
        await self.repo.upsert(
            schema.template_type.value,
            {
                "name": schema.name,
                "slug": remote.get("slug"),
                "docuseal_template_id": external_id,
                "html": html,
                "is_active": True,
                "is_default": True,
            },
        )
        logger.info("docuseal_template_registered", template_type=schema.template_type.value, external_id=external_id)
        return TemplateResult(
            template_type=schema.template_type.value,
            success=True,
            external_id=external_id,
            name=remote.get("name") or schema.name,
            slug=remote.get("slug"),
        )

    async def create_all(self, template_types: Optional[Iterable[str]] = None) -> list[TemplateResult]:
        """Attempt every type; collect a result per type and never stop early."""
        types = list(template_types) if template_types is not None else [t.value for t in ALL_TEMPLATE_TYPES]
        results: list[TemplateResult] = []
        for template_type in types:
            try:
                async with self.repo.db.begin_nested():
                    results.append(await self.create_template(template_type))
            except (TemplateError, DocuSealError, SQLAlchemyError) as exc:
                logger.warning("docuseal_template_failed", template_type=template_type, error=str(exc))
                results.append(TemplateResult(template_type=str(template_type), success=False, error=str(exc)))
        created = sum(1 for r in results if r.success)
        logger.info("docuseal_templates_created", created=created, attempted=len(results))
        return results
