"""
Field schemas for the nine SkyYield e-signature templates.

Each template is a list of named sections; each field declares its kind,
the signing role that fills it and whether it is required. Field names are
the keys DocuSeal uses for prefilled values, so they must stay stable.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from partner_portal.models.document import TemplateType


class FieldKind(str, enum.Enum):
    TEXT = "text"
    DATE = "date"
    NUMBER = "number"
    SIGNATURE = "signature"
    SELECT = "select"
    TEXTAREA = "textarea"


class TemplateError(Exception):
    """Raised for unknown template types or invalid schemas."""
    pass


@dataclass(frozen=True)
class TemplateField:
    name: str
    kind: FieldKind
    role: str
    required: bool = False
    label: Optional[str] = None
    options: tuple[str, ...] = ()

    @property
    def display_label(self) -> str:
        return self.label or self.name.replace("_", " ").title()


@dataclass(frozen=True)
class TemplateSection:
    title: str
    fields: tuple[TemplateField, ...]


@dataclass(frozen=True)
class TemplateSchema:
    template_type: TemplateType
    name: str
    title: str
    sections: tuple[TemplateSection, ...]

    @property
    def fields(self) -> list[TemplateField]:
        return [f for section in self.sections for f in section.fields]

    @property
    def roles(self) -> list[str]:
        seen: list[str] = []
        for f in self.fields:
            if f.role not in seen:
                seen.append(f.role)
        return seen


# Roles
SKYYIELD = "SkyYield"
CLIENT = "Client"
CONTRACTOR = "Contractor"
PARTNER = "Partner"
EMPLOYEE = "Employee"
CANDIDATE = "Candidate"


def _text(name, role, required=False, label=None):
    return TemplateField(name, FieldKind.TEXT, role, required, label)


def _date(name, role, required=False, label=None):
    return TemplateField(name, FieldKind.DATE, role, required, label)


def _number(name, role, required=False, label=None):
    return TemplateField(name, FieldKind.NUMBER, role, required, label)


def _signature(name, role, label=None):
    return TemplateField(name, FieldKind.SIGNATURE, role, True, label)


def _select(name, role, options, required=False, label=None):
    return TemplateField(name, FieldKind.SELECT, role, required, label, tuple(options))


def _textarea(name, role, required=False, label=None):
    return TemplateField(name, FieldKind.TEXTAREA, role, required, label)


EQUIPMENT_ITEMS = ("ap_inside", "ap_outside", "router", "switch", "software", "installation")


def _equipment_rows(with_terms: bool = False) -> tuple[TemplateField, ...]:
    rows: list[TemplateField] = []
    for item in EQUIPMENT_ITEMS:
        rows += [
            _number(f"{item}_ppu", SKYYIELD),
            _number(f"{item}_units", SKYYIELD),
            _number(f"{item}_total", SKYYIELD),
        ]
        if with_terms:
            rows += [
                _select(f"{item}_payment", SKYYIELD, (SKYYIELD, PARTNER)),
                _select(f"{item}_ownership", SKYYIELD, (SKYYIELD, PARTNER)),
            ]
    return tuple(rows)


def _countersigned(other_prefix: str, other_role: str) -> TemplateSection:
    """SkyYield + counterparty signature block used by the partner-facing agreements."""
    return TemplateSection("SIGNATURES", (
        _signature("skyyield_signature", SKYYIELD),
        _text("skyyield_signer_name", SKYYIELD, True),
        _text("skyyield_signer_title", SKYYIELD, True),
        _date("skyyield_signature_date", SKYYIELD, True),
        _signature(f"{other_prefix}_signature", other_role),
        _text(f"{other_prefix}_signer_name", other_role, True),
        _text(f"{other_prefix}_signer_title", other_role),
        _date(f"{other_prefix}_signature_date", other_role, True),
    ))


_CONTRACTOR_CONTRACT = TemplateSchema(
    TemplateType.CONTRACTOR_CONTRACT,
    "SkyYield - Contractor Contract",
    "Independent Contractor Agreement",
    (
        TemplateSection("AGREEMENT", (_date("effective_date", SKYYIELD, True),)),
        TemplateSection("CONTRACTOR", (
            _text("contractor_name", CONTRACTOR, True),
            _text("contractor_legal_name", CONTRACTOR),
            _select("contractor_entity_type", CONTRACTOR, ("Individual", "LLC", "Corporation"), True),
            _text("contractor_state_residence", CONTRACTOR, True),
        )),
        TemplateSection("ADDRESS", (
            _text("contractor_address_1", CONTRACTOR, True),
            _text("contractor_address_2", CONTRACTOR),
            _text("contractor_city", CONTRACTOR, True),
            _text("contractor_state", CONTRACTOR, True),
            _text("contractor_zip", CONTRACTOR, True),
            _text("contractor_attn", CONTRACTOR),
        )),
        TemplateSection("TERMS", (
            _text("engagement_term", SKYYIELD, True),
            _textarea("scope_of_work", SKYYIELD, True),
            _textarea("contractor_fees", SKYYIELD, True),
        )),
        TemplateSection("SIGNATURES", (
            _signature("skyyield_signature", SKYYIELD),
            _text("skyyield_signer_title", SKYYIELD, True),
            _date("skyyield_signature_date", SKYYIELD, True),
            _signature("contractor_signature", CONTRACTOR),
            _text("contractor_signer_title", CONTRACTOR),
            _date("contractor_signature_date", CONTRACTOR, True),
        )),
    ),
)

_NDA = TemplateSchema(
    TemplateType.NDA,
    "SkyYield - NDA",
    "Non-Disclosure Agreement",
    (
        TemplateSection("DISCLOSING PARTY", (
            _text("disclosing_party_name", SKYYIELD, True),
            _text("disclosing_party_address", SKYYIELD, True),
        )),
        TemplateSection("RECEIVING PARTY", (
            _text("receiving_party_name", CLIENT, True),
            _text("receiving_party_address", CLIENT, True),
        )),
        TemplateSection("SIGNATURES", (
            _signature("disclosing_party_signature", SKYYIELD),
            _text("disclosing_party_signer_name", SKYYIELD, True),
            _text("disclosing_party_signer_title", SKYYIELD, True),
            _date("disclosing_party_signature_date", SKYYIELD, True),
            _signature("receiving_party_signature", CLIENT),
            _text("receiving_party_signer_name", CLIENT, True),
            _text("receiving_party_signer_title", CLIENT),
            _date("receiving_party_signature_date", CLIENT, True),
        )),
    ),
)

_LOI = TemplateSchema(
    TemplateType.LOI,
    "SkyYield - LOI",
    "Letter of Intent",
    (
        TemplateSection("AGREEMENT", (_date("loi_date", SKYYIELD, True),)),
        TemplateSection("LOCATION PARTNER", (
            _text("lp_company_name", CLIENT, True),
            _text("lp_address_1", CLIENT, True),
            _text("lp_address_2", CLIENT),
            _text("lp_city", CLIENT, True),
            _text("lp_state", CLIENT, True),
            _text("lp_zip", CLIENT, True),
            _text("lp_contact_name", CLIENT, True),
            _text("lp_contact_title", CLIENT),
            _text("lp_contact_email", CLIENT, True),
        )),
        TemplateSection("TRIAL PERIOD", (
            _date("trial_start_date", SKYYIELD, True),
            _date("trial_end_date", SKYYIELD, True),
        )),
        TemplateSection("EQUIPMENT", _equipment_rows() + (_number("total_cost", SKYYIELD),)),
        _countersigned("lp", CLIENT),
    ),
)

_LOCATION_DEPLOYMENT = TemplateSchema(
    TemplateType.LOCATION_DEPLOYMENT,
    "SkyYield - Deployment Agreement",
    "Deployment Agreement",
    (
        TemplateSection("AGREEMENT", (_date("agreement_date", SKYYIELD, True),)),
        TemplateSection("PARTNER", (
            _text("lp_company_name", CLIENT, True),
            _text("lp_address", CLIENT, True),
            _text("deployment_option", SKYYIELD, True),
        )),
        TemplateSection("EQUIPMENT", _equipment_rows(with_terms=True) + (
            _number("total_to_lp", SKYYIELD),
            _number("total_to_skyyield", SKYYIELD),
        )),
        TemplateSection("REVENUE", (_number("revenue_payout", SKYYIELD, True),)),
        _countersigned("lp", CLIENT),
    ),
)

_REFERRAL_AGREEMENT = TemplateSchema(
    TemplateType.REFERRAL_AGREEMENT,
    "SkyYield - Partner Agreement",
    "Partner Agreement",
    (
        TemplateSection("PARTNER", (
            _text("partner_name", PARTNER, True),
            _text("partner_company", PARTNER),
            _text("partner_address", PARTNER, True),
        )),
        TemplateSection("COMMISSION", (
            _number("referral_commission_pct", SKYYIELD),
            _number("relationship_commission_pct", SKYYIELD),
            _number("channel_commission_pct", SKYYIELD),
            _number("partner_commission_pct", SKYYIELD, True),
            _text("partner_commission_text", SKYYIELD),
        )),
        TemplateSection("SIGNATURES", (
            _signature("skyyield_signature", SKYYIELD),
            _text("skyyield_signer_name", SKYYIELD, True),
            _text("skyyield_signer_title", SKYYIELD, True),
            _date("skyyield_signature_date", SKYYIELD, True),
            _signature("partner_signature", PARTNER),
            _text("signing_partner_name", PARTNER, True),
            _text("partner_title", PARTNER),
            _date("partner_signature_date", PARTNER, True),
        )),
    ),
)

_NON_COMPETE = TemplateSchema(
    TemplateType.NON_COMPETE,
    "SkyYield - Non-Compete",
    "Non-Compete Agreement",
    (
        TemplateSection("AGREEMENT", (_date("effective_date", SKYYIELD, True),)),
        TemplateSection("EMPLOYEE", (
            _text("employee_address_1", EMPLOYEE, True),
            _text("employee_address_2", EMPLOYEE),
            _text("employee_city", EMPLOYEE, True),
            _text("employee_state", EMPLOYEE, True),
            _text("employee_zip", EMPLOYEE, True),
            _text("employee_attn", EMPLOYEE),
            _text("employee_facsimile", EMPLOYEE),
            _text("employee_email", EMPLOYEE, True),
        )),
        TemplateSection("RESTRICTION", (_number("restricted_period_months", SKYYIELD, True),)),
        TemplateSection("PRIOR INVENTIONS", (_textarea("prior_inventions", EMPLOYEE),)),
        TemplateSection("SIGNATURES", (
            _signature("employee_signature", EMPLOYEE),
            _date("employee_signing_date", EMPLOYEE, True),
        )),
    ),
)

_EMPLOYEE_WRITEUP = TemplateSchema(
    TemplateType.EMPLOYEE_WRITEUP,
    "SkyYield - Employee Write-Up",
    "Employee Write-Up",
    (
        TemplateSection("DETAILS", (
            _date("writeup_date", SKYYIELD, True),
            _text("employee_name", SKYYIELD, True),
            _text("manager_name", SKYYIELD, True),
        )),
        TemplateSection("REASON", (_textarea("reason_for_writeup", SKYYIELD, True),)),
        TemplateSection("PROBATION", (
            _date("probation_start_date", SKYYIELD, True),
            _date("probation_end_date", SKYYIELD, True),
        )),
        TemplateSection("GOALS", (
            _textarea("goals_during_probation", SKYYIELD, True),
            _select("failed_probation_result", SKYYIELD, ("Suspension", "Termination"), True),
        )),
        TemplateSection("SIGNATURES", (
            _signature("manager_signature", SKYYIELD),
            _date("manager_signature_date", SKYYIELD, True),
            _signature("employee_signature", EMPLOYEE),
            _date("employee_signature_date", EMPLOYEE, True),
        )),
    ),
)

_OFFER_LETTER = TemplateSchema(
    TemplateType.OFFER_LETTER,
    "SkyYield - Offer Letter",
    "Employment Offer",
    (
        TemplateSection("OFFER", (
            _date("offer_date", SKYYIELD, True),
            _text("candidate_name", SKYYIELD, True),
        )),
        TemplateSection("POSITION", (
            _text("job_title", SKYYIELD, True),
            _textarea("job_description", SKYYIELD, True),
            _date("start_date", SKYYIELD, True),
        )),
        TemplateSection("COMPENSATION", (
            _number("bimonthly_pay", SKYYIELD, True),
            _number("annual_pay", SKYYIELD, True),
        )),
        TemplateSection("TIME OFF", (
            _number("vacation_weeks", SKYYIELD, True),
            _number("vacation_days", SKYYIELD, True),
            _number("flex_days", SKYYIELD, True),
        )),
        TemplateSection("SIGNATURES", (
            _signature("skyyield_signature", SKYYIELD),
            _text("skyyield_signer_name", SKYYIELD, True),
            _date("skyyield_signature_date", SKYYIELD, True),
            _signature("candidate_signature", CANDIDATE),
            _date("candidate_signature_date", CANDIDATE, True),
        )),
    ),
)

_TERMINATION = TemplateSchema(
    TemplateType.TERMINATION,
    "SkyYield - Termination Letter",
    "Termination Letter",
    (
        TemplateSection("DETAILS", (
            _date("termination_letter_date", SKYYIELD, True),
            _text("employee_name", SKYYIELD, True),
            _text("employee_address", SKYYIELD, True),
            _text("employee_address_2", SKYYIELD),
            _text("employee_city", SKYYIELD, True),
            _text("employee_state", SKYYIELD, True),
            _text("employee_zip", SKYYIELD, True),
            _text("skyyield_representative", SKYYIELD, True),
            _text("job_title", SKYYIELD, True),
            _date("termination_date", SKYYIELD, True),
            _text("termination_time", SKYYIELD, True),
        )),
        TemplateSection("REASON", (_textarea("termination_reasons", SKYYIELD, True),)),
        TemplateSection("FINAL", (
            _date("equipment_return_date", SKYYIELD, True),
            _text("equipment_return_time", SKYYIELD, True),
            _date("final_pay_date", SKYYIELD, True),
        )),
        TemplateSection("SIGNATURES", (
            _signature("skyyield_signature", SKYYIELD),
            _signature("employee_signature", EMPLOYEE),
        )),
    ),
)

TEMPLATE_SCHEMAS: dict[TemplateType, TemplateSchema] = {
    schema.template_type: schema
    for schema in (
        _CONTRACTOR_CONTRACT,
        _NDA,
        _LOI,
        _LOCATION_DEPLOYMENT,
        _REFERRAL_AGREEMENT,
        _NON_COMPETE,
        _EMPLOYEE_WRITEUP,
        _OFFER_LETTER,
        _TERMINATION,
    )
}

ALL_TEMPLATE_TYPES: tuple[TemplateType, ...] = tuple(TemplateType)


def get_template_schema(template_type: str) -> TemplateSchema:
    try:
        return TEMPLATE_SCHEMAS[TemplateType(template_type)]
    except ValueError:
        raise TemplateError(f"Unknown template type: {template_type}") from None
