"""
PayeeService — Tipalti payee setup for partners that get paid.

An invite registers the partner as a Tipalti payee under its partner code and
returns the signed onboarding link the partner uses to enter bank details.
"""
import re
from dataclasses import dataclass
from typing import Any, Optional

from partner_portal.core.logging import get_logger
from partner_portal.integrations.tipalti import TipaltiClient, TipaltiError
from partner_portal.models.partner import Partner, PartnerType
from partner_portal.repositories.partner_repo import PartnerRepository

logger = get_logger(__name__)

STATUS_INVITED = "invited"

_ENTITY_TYPES = (
    ({"llc"}, "LLC"),
    ({"corp", "corporation", "inc", "incorporated"}, "Corporation"),
    ({"partnership", "lp", "llp"}, "Partnership"),
    ({"sole", "proprietor", "proprietorship"}, "SoleProprietor"),
)


class PayeeInviteError(Exception):
    """The partner cannot be invited (already a payee, no email, never invited)."""


class PayeeAlreadyInvitedError(PayeeInviteError):
    def __init__(self, partner_pk: int, payee_id: str):
        self.payee_id = payee_id
        super().__init__(f"Partner {partner_pk} is already Tipalti payee {payee_id}")


@dataclass
class PayeeInvite:
    partner: Partner
    payee_id: str
    onboarding_url: str


def payee_entity_type(partner: Partner) -> str:
    company = (partner.company_legal_name or "").lower()
    if not company:
        return "Individual" if partner.partner_type == PartnerType.CONTRACTOR else "Company"
    words = set(re.findall(r"[a-z]+", company))
    for markers, entity_type in _ENTITY_TYPES:
        if words & markers:
            return entity_type
    return "Company"


def build_payee(partner: Partner, payee_id: str) -> dict[str, Any]:
    name = partner.company_legal_name or partner.display_name
    return {
        "idap": payee_id,
        "alias": partner.display_name,
        "email": partner.contact_email,
        "payeeEntityType": payee_entity_type(partner),
        "payeeName": name,
        "street1": partner.address_line_1 or "",
        "street2": partner.address_line_2 or "",
        "city": partner.city or "",
        "state": partner.state or "",
        "zip": partner.zip or "",
        "country": "US",
    }


class PayeeService:
    def __init__(self, partner_repo: PartnerRepository, client: TipaltiClient):
        self.repo = partner_repo
        self.client = client

    async def invite(self, partner: Partner, performed_by: str = "System") -> PayeeInvite:
        """
        Create the Tipalti payee and mark the partner invited.

        A 409 from Tipalti means the payee already exists there (an earlier
        invite whose local write was lost), so the invite still goes ahead.
        Any other Tipalti failure propagates and nothing is recorded.
        """
        if partner.tipalti_payee_id:
            raise PayeeAlreadyInvitedError(partner.id, partner.tipalti_payee_id)
        if not partner.contact_email:
            raise PayeeInviteError(f"Partner {partner.id} has no contact email")

        payee_id = partner.partner_id or f"P-{partner.id}"
        try:
            await self.client.create_payee(build_payee(partner, payee_id))
        except TipaltiError as exc:
            if exc.status_code != 409:
                raise
            logger.info("tipalti_payee_exists", partner_id=partner.id, payee_id=payee_id)

        await self.repo.update_fields(partner, {"tipalti_payee_id": payee_id, "tipalti_status": STATUS_INVITED})
        await self.repo.add_activity(
            partner.id,
            "tipalti_invite_sent",
            description="Tipalti payment setup invite sent",
            performed_by=performed_by,
            details={"tipalti_payee_id": payee_id, "email": partner.contact_email},
        )
        logger.info("tipalti_invite_sent", partner_id=partner.id, payee_id=payee_id)
        return PayeeInvite(partner=partner, payee_id=payee_id, onboarding_url=self.client.onboarding_url(payee_id))

    async def refresh_status(self, partner: Partner) -> dict[str, Optional[Any]]:
        """Pull the payee's status from Tipalti and store it on the partner."""
        if not partner.tipalti_payee_id:
            raise PayeeInviteError(f"Partner {partner.id} has not been invited to Tipalti")

        payee = await self.client.get_payee(partner.tipalti_payee_id)
        status = str(payee.get("payeeStatus") or "unknown").lower()[:32]
        if status != partner.tipalti_status:
            await self.repo.update_fields(partner, {"tipalti_status": status})
        return {
            "tipalti_payee_id": partner.tipalti_payee_id,
            "tipalti_status": status,
            "payment_method": payee.get("paymentMethod"),
            "is_payable": payee.get("isPayable"),
        }
