"""
FastAPI dependencies for dependency injection.
"""
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from partner_portal.core.database import get_db
from partner_portal.integrations.docuseal import DocuSealClient
from partner_portal.integrations.tipalti import TipaltiClient
from partner_portal.repositories.article_repo import ArticleRepository
from partner_portal.repositories.document_repo import DocumentRepository, TemplateRepository
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.repositories.portal_repo import PortalRepository
from partner_portal.repositories.product_repo import ProductRepository
from partner_portal.repositories.prospect_repo import ProspectRepository
from partner_portal.services.article_service import ArticleService
from partner_portal.services.document_service import DocumentService
from partner_portal.services.partner_service import PartnerService
from partner_portal.services.payee_service import PayeeService
from partner_portal.services.pipeline_service import PipelineService
from partner_portal.services.portal_service import PortalService
from partner_portal.services.product_service import ProductService
from partner_portal.services.prospect_service import ProspectService
from partner_portal.services.template_factory import TemplateFactory
from partner_portal.services.trial_service import TrialService


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_partner_repo(db: DbSession) -> PartnerRepository:
    """Get PartnerRepository instance."""
    return PartnerRepository(db)


async def get_portal_repo(db: DbSession) -> PortalRepository:
    return PortalRepository(db)


async def get_template_repo(db: DbSession) -> TemplateRepository:
    return TemplateRepository(db)


async def get_document_repo(db: DbSession) -> DocumentRepository:
    return DocumentRepository(db)


async def get_prospect_repo(db: DbSession) -> ProspectRepository:
    return ProspectRepository(db)


async def get_product_repo(db: DbSession) -> ProductRepository:
    return ProductRepository(db)


async def get_article_repo(db: DbSession) -> ArticleRepository:
    return ArticleRepository(db)


async def get_docuseal_client() -> DocuSealClient:
    """Get DocuSealClient configured from settings."""
    return DocuSealClient()


async def get_tipalti_client() -> TipaltiClient:
    return TipaltiClient()


PartnerRepo = Annotated[PartnerRepository, Depends(get_partner_repo)]


async def get_pipeline_service(partner_repo: PartnerRepo) -> PipelineService:
    """Get PipelineService instance."""
    return PipelineService(partner_repo)


async def get_partner_service(
    partner_repo: PartnerRepo,
    pipeline: Annotated[PipelineService, Depends(get_pipeline_service)],
) -> PartnerService:
    """Get PartnerService instance."""
    return PartnerService(partner_repo, pipeline)


async def get_template_factory(
    template_repo: Annotated[TemplateRepository, Depends(get_template_repo)],
    client: Annotated[DocuSealClient, Depends(get_docuseal_client)],
) -> TemplateFactory:
    return TemplateFactory(template_repo, client)


async def get_document_service(
    partner_repo: PartnerRepo,
    template_repo: Annotated[TemplateRepository, Depends(get_template_repo)],
    document_repo: Annotated[DocumentRepository, Depends(get_document_repo)],
    pipeline: Annotated[PipelineService, Depends(get_pipeline_service)],
    client: Annotated[DocuSealClient, Depends(get_docuseal_client)],
) -> DocumentService:
    """Get DocumentService instance."""
    return DocumentService(partner_repo, template_repo, document_repo, pipeline, client)


async def get_trial_service(
    partner_repo: PartnerRepo,
    pipeline: Annotated[PipelineService, Depends(get_pipeline_service)],
) -> TrialService:
    return TrialService(partner_repo, pipeline)


async def get_prospect_service(
    prospect_repo: Annotated[ProspectRepository, Depends(get_prospect_repo)],
    partner_repo: PartnerRepo,
) -> ProspectService:
    """Get ProspectService instance."""
    return ProspectService(prospect_repo, partner_repo)


async def get_product_service(
    product_repo: Annotated[ProductRepository, Depends(get_product_repo)],
) -> ProductService:
    return ProductService(product_repo)


async def get_article_service(
    article_repo: Annotated[ArticleRepository, Depends(get_article_repo)],
) -> ArticleService:
    return ArticleService(article_repo)


async def get_portal_service(
    partner_repo: PartnerRepo,
    portal_repo: Annotated[PortalRepository, Depends(get_portal_repo)],
) -> PortalService:
    """Get PortalService instance."""
    return PortalService(partner_repo, portal_repo)


async def get_payee_service(
    partner_repo: PartnerRepo,
    client: Annotated[TipaltiClient, Depends(get_tipalti_client)],
) -> PayeeService:
    return PayeeService(partner_repo, client)
