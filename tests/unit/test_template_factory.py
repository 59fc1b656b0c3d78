"""
Template schemas, HTML rendering and DocuSeal registration.
"""
import re

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from partner_portal.integrations.docuseal import DocuSealClient, DocuSealError
from partner_portal.models.document import TemplateType
from partner_portal.repositories.document_repo import TemplateRepository
from partner_portal.services.template_factory import TemplateFactory, render_field, render_template_html
from partner_portal.services.template_schemas import (
    ALL_TEMPLATE_TYPES,
    FieldKind,
    TEMPLATE_SCHEMAS,
    TemplateError,
    get_template_schema,
)


def _fake_client(fail_on: set[str] | None = None) -> MagicMock:
    fail_on = fail_on or set()
    client = MagicMock(spec=DocuSealClient)
    calls = {"n": 0}

    async def create_html_template(name, html, folder_name):
        calls["n"] += 1
        if name in fail_on:
            raise DocuSealError("DocuSeal API error: 422 - invalid html", status_code=422)
        return {"id": 700 + calls["n"], "slug": f"slug-{calls['n']}", "name": name}

    client.create_html_template = AsyncMock(side_effect=create_html_template)
    return client


class TestSchemas:
    def test_nine_template_types(self):
        assert len(ALL_TEMPLATE_TYPES) == 9
        assert set(TEMPLATE_SCHEMAS) == set(TemplateType)

    def test_field_names_unique_per_template(self):
        for schema in TEMPLATE_SCHEMAS.values():
            names = [f.name for f in schema.fields]
            assert len(names) == len(set(names)), schema.template_type

    def test_select_fields_carry_options(self):
        for schema in TEMPLATE_SCHEMAS.values():
            for f in schema.fields:
                if f.kind == FieldKind.SELECT:
                    assert f.options, f.name

    def test_every_template_has_a_signature(self):
        for schema in TEMPLATE_SCHEMAS.values():
            assert any(f.kind == FieldKind.SIGNATURE for f in schema.fields), schema.template_type

    def test_unknown_type_raises(self):
        with pytest.raises(TemplateError):
            get_template_schema("lease")


class TestRendering:
    def test_field_tag_carries_name_role_required(self):
        schema = get_template_schema("loi")
        field = next(f for f in schema.fields if f.name == "lp_company_name")
        html = render_field(field)
        assert '<text-field name="lp_company_name" role="Client" required="true"' in html

    def test_select_renders_options(self):
        schema = get_template_schema("contractor_contract")
        field = next(f for f in schema.fields if f.name == "contractor_entity_type")
        html = render_field(field)
        assert html.count("<option>") == 3

    def test_document_has_one_tag_per_field(self):
        schema = get_template_schema("nda")
        html = render_template_html(schema, company_name="SkyYield")
        tags = re.findall(r"<(\w+)-field ", html)
        assert len(tags) == len(schema.fields)
        assert "Non-Disclosure Agreement" in html

    def test_company_name_is_escaped(self):
        html = render_template_html(get_template_schema("nda"), company_name="<b>Acme</b>")
        assert "<b>Acme</b>" not in html


class TestFactory:
    async def test_create_template_upserts_by_type(self, db_session):
        repo = TemplateRepository(db_session)
        factory = TemplateFactory(repo, _fake_client())

        first = await factory.create_template("loi")
        second = await factory.create_template("loi")

        templates = await repo.get_all()
        assert len(templates) == 1
        assert templates[0].docuseal_template_id == second.external_id
        assert first.external_id != second.external_id

    async def test_create_template_propagates_errors(self, db_session):
        factory = TemplateFactory(TemplateRepository(db_session), _fake_client(fail_on={"SkyYield - NDA"}))
        with pytest.raises(DocuSealError):
            await factory.create_template("nda")

    async def test_create_template_unknown_type(self, db_session):
        factory = TemplateFactory(TemplateRepository(db_session), _fake_client())
        with pytest.raises(TemplateError):
            await factory.create_template("lease")

    async def test_create_all_isolates_failures(self, db_session):
        repo = TemplateRepository(db_session)
        factory = TemplateFactory(repo, _fake_client(fail_on={"SkyYield - NDA"}))

        results = await factory.create_all()

        assert len(results) == 9
        assert sum(1 for r in results if r.success) == 8
        failed = [r for r in results if not r.success]
        assert failed[0].template_type == "nda"
        assert "422" in failed[0].error
        assert len(await repo.get_all()) == 8

    async def test_create_all_reports_unknown_types(self, db_session):
        factory = TemplateFactory(TemplateRepository(db_session), _fake_client())
        results = await factory.create_all(["loi", "lease"])
        assert [r.success for r in results] == [True, False]

    async def test_create_all_survives_non_json_reply(self, db_session):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(200, text="<html>gateway</html>")
            return httpx.Response(200, json={"id": 900 + calls["n"], "slug": f"s-{calls['n']}"})

        client = DocuSealClient(api_key="key", base_url="https://docuseal.test", transport=httpx.MockTransport(handler))
        repo = TemplateRepository(db_session)

        results = await TemplateFactory(repo, client).create_all()

        assert calls["n"] == 9
        assert [r.success for r in results] == [False] + [True] * 8
        assert "invalid JSON" in results[0].error
        assert len(await repo.get_all()) == 8
