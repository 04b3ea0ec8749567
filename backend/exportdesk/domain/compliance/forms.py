"""Kind-specific form data for compliance documents.

Forms are stored incomplete while a document is being drafted; completeness
is checked by the ready-check before a document can be marked READY or
submitted. Each form lists its own required fields.
Unknown form fields are rejected, so a full form payload only ever validates
against the form model of its own kind.
"""

from enum import Enum
from typing import ClassVar, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class DocKey(str, Enum):
    """Compliance document kinds handled by the lifecycle manager."""
    PHYTO = "PHYTO"
    COO = "COO"
    INSURANCE = "INSURANCE"


class TransportMode(str, Enum):
    SEA = "SEA"
    AIR = "AIR"
    ROAD = "ROAD"


class PhytoProductLine(BaseModel):
    """One consignment line on a phytosanitary certificate."""
    model_config = ConfigDict(frozen=True)

    id: str
    botanical_name: str = ""
    common_name: str = ""
    hs_code: Optional[str] = None
    quantity_value: str = ""
    quantity_unit: str = ""
    packaging: str = ""


class PhytoTreatment(BaseModel):
    model_config = ConfigDict(frozen=True)

    applied: bool = False
    type: Optional[str] = None
    date: Optional[str] = None
    chemical: Optional[str] = None
    duration: Optional[str] = None
    temperature: Optional[str] = None
    notes: Optional[str] = None


class PhytoForm(BaseModel):
    """Phytosanitary certificate application."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    required_fields: ClassVar[Tuple[str, ...]] = (
        "exporter_name",
        "consignee_name",
        "origin_country",
        "destination_country",
        "port_of_loading",
        "port_of_discharge",
        "place_of_inspection",
        "inspection_date",
    )

    exporter_name: str = ""
    exporter_address: str = ""
    exporter_country: str = ""
    consignee_name: str = ""
    consignee_address: str = ""
    consignee_country: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    origin_country: str = ""
    destination_country: str = ""
    mode: TransportMode = TransportMode.SEA
    port_of_loading: str = ""
    port_of_discharge: str = ""
    departure_date: Optional[str] = None
    products: Tuple[PhytoProductLine, ...] = ()
    treatment: PhytoTreatment = Field(default_factory=PhytoTreatment)
    place_of_inspection: str = ""
    inspection_date: Optional[str] = None
    inspector_name: Optional[str] = None
    additional_declarations: Optional[str] = None


class CooForm(BaseModel):
    """Certificate of origin application."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    required_fields: ClassVar[Tuple[str, ...]] = (
        "exporter_name",
        "consignee_name",
        "transport_mode",
        "origin_criteria",
        "invoice_number",
        "invoice_date",
        "declaration_name",
        "declaration_date",
    )

    exporter_name: str = ""
    exporter_address: str = ""
    consignee_name: str = ""
    consignee_address: str = ""
    transport_mode: str = ""
    vessel_or_flight: Optional[str] = None
    departure_date: Optional[str] = None
    origin_criteria: str = ""
    invoice_number: str = ""
    invoice_date: str = ""
    gross_weight: str = ""
    net_weight: str = ""
    packages: str = ""
    remarks: Optional[str] = None
    declaration_name: str = ""
    declaration_title: str = ""
    declaration_date: str = ""


class InsuranceForm(BaseModel):
    """Cargo insurance certificate details."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    required_fields: ClassVar[Tuple[str, ...]] = ("provider", "coverage", "contact")

    policy_number: Optional[str] = None
    provider: str = ""
    coverage: str = ""
    contact: str = ""


ComplianceForm = Union[PhytoForm, CooForm, InsuranceForm]

FORM_TYPES = {
    DocKey.PHYTO: PhytoForm,
    DocKey.COO: CooForm,
    DocKey.INSURANCE: InsuranceForm,
}


def form_type_for(doc_key: DocKey) -> type:
    """Form model class used by a document kind."""
    return FORM_TYPES[DocKey(doc_key)]


def missing_required_fields(form: ComplianceForm) -> List[str]:
    """Names of required fields that are empty on the form."""
    missing = []
    for name in form.required_fields:
        value = getattr(form, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing
