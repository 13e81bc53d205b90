"""Metadata schema registry for recurring-cost categories.

Each category may carry extra free-form fields (a policy number for insurance, a meter type for a utility).
The schemas are data: registering a new category needs no code changes anywhere else.
"""

from typing import Any, ClassVar, Literal

from pydantic import BaseModel

FieldType = Literal["text", "tel", "email", "url", "date", "select", "number"]


class MetadataField(BaseModel):
    """One extra field of a category."""

    key: str
    label: str
    type: FieldType = "text"
    options: list[str] | None = None


class MetadataSchemaRegistry:
    """Registry of category metadata schemas."""

    _registry: ClassVar[dict[str, list[MetadataField]]] = {}

    @classmethod
    def register(cls, category: str, fields: list[MetadataField | dict[str, Any]]) -> None:
        """Register (or replace) the schema of a category."""
        cls._registry[category] = [MetadataField.model_validate(f) for f in fields]

    @classmethod
    def get(cls, category: str) -> list[MetadataField]:
        """Schema of a category; unknown categories fall back to 'other'."""
        return list(cls._registry.get(category, cls._registry.get("other", [])))

    @classmethod
    def available(cls) -> list[str]:
        """List all categories with a registered schema."""
        return list(cls._registry.keys())

    @classmethod
    def clean_metadata(cls, category: str, payload: dict[str, Any] | None) -> dict[str, Any]:
        """Keep only the declared, non-empty keys of a metadata payload; select values must be an option."""
        cleaned: dict[str, Any] = {}
        for field in cls.get(category):
            value = (payload or {}).get(field.key)
            if value is None or value == "":
                continue
            if field.options is not None and value not in field.options:
                continue
            cleaned[field.key] = value
        return cleaned


# Categories offered per owner type; "member" splits into adult and child.
OWNER_CATEGORIES: dict[str, list[tuple[str, str]]] = {
    "household": [
        ("water", "Water"),
        ("energy", "Energy"),
        ("council", "Council Tax"),
        ("waste", "Waste"),
        ("utility", "Utility (Other)"),
        ("household_bill", "Fixed Bill"),
        ("subscription", "Subscription"),
        ("insurance", "Insurance"),
        ("mortgage", "Mortgage"),
        ("other", "Other"),
    ],
    "vehicle": [
        ("vehicle_fuel", "Fuel"),
        ("vehicle_tax", "Tax"),
        ("vehicle_mot", "MOT"),
        ("vehicle_service", "Service / Plan"),
        ("vehicle_breakdown", "Breakdown"),
        ("insurance", "Insurance"),
        ("vehicle_finance", "Finance"),
        ("other", "Other"),
    ],
    "adult": [
        ("fun_money", "Fun Money"),
        ("subscription", "Subscription"),
        ("insurance", "Life/Health Insurance"),
        ("education", "Education"),
        ("care", "Care & Support"),
        ("loan", "Loan"),
        ("other", "Other"),
    ],
    "child": [
        ("pocket_money", "Pocket Money"),
        ("subscription", "Subscription"),
        ("education", "Education"),
        ("care", "Care & Support"),
        ("other", "Other"),
    ],
    "pet": [
        ("food", "Food & Supplies"),
        ("insurance", "Insurance"),
        ("vet", "Vet & Medical"),
        ("other", "Other"),
    ],
}


def categories_for(owner_type: str) -> list[tuple[str, str]]:
    """Categories offered for an owner type; members default to the adult list, unknown owners to household."""
    if owner_type == "member":
        owner_type = "adult"
    return list(OWNER_CATEGORIES.get(owner_type, OWNER_CATEGORIES["household"]))


_DEFAULT_SCHEMAS: dict[str, list[dict[str, Any]]] = {
    "insurance": [
        {"key": "policy_number", "label": "Policy Number"},
        {"key": "provider_contact", "label": "Provider Phone", "type": "tel"},
        {
            "key": "policy_type",
            "label": "Policy Type",
            "type": "select",
            "options": ["Contents", "Building", "Combined", "Life", "Pet", "Vehicle", "Travel"],
        },
        {"key": "renewal_date", "label": "Renewal Date", "type": "date"},
    ],
    "utility": [
        {"key": "account_number", "label": "Account Number"},
        {
            "key": "meter_type",
            "label": "Meter Type",
            "type": "select",
            "options": ["Standard", "Smart", "Prepaid", "Economy 7"],
        },
        {"key": "provider_website", "label": "Provider Website", "type": "url"},
    ],
    "household_bill": [
        {"key": "account_number", "label": "Account Number"},
        {"key": "contract_end_date", "label": "Contract End Date", "type": "date"},
    ],
    "subscription": [
        {"key": "login_email", "label": "Login Email", "type": "email"},
        {"key": "plan_tier", "label": "Plan Tier"},
    ],
    "vehicle_tax": [{"key": "registration", "label": "Registration Plate"}],
    "vehicle_service": [
        {"key": "garage_name", "label": "Garage Name"},
        {"key": "service_level", "label": "Service Level", "type": "select", "options": ["Interim", "Full", "Major"]},
    ],
    "warranty": [
        {"key": "provider_name", "label": "Provider Name"},
        {"key": "reference_number", "label": "Reference Number"},
        {"key": "expiry_date", "label": "Expiry Date", "type": "date"},
    ],
    "vehicle_mot": [
        {"key": "test_centre", "label": "Test Centre"},
        {"key": "expiry_date", "label": "Expiry Date", "type": "date"},
    ],
    "vehicle_fuel": [
        {
            "key": "fuel_type",
            "label": "Fuel Type",
            "type": "select",
            "options": ["Petrol", "Diesel", "Electric", "Hybrid", "LPG"],
        },
        {"key": "loyalty_card", "label": "Loyalty Card"},
    ],
    "other": [{"key": "comments", "label": "Comments"}],
}

for _category, _fields in _DEFAULT_SCHEMAS.items():
    MetadataSchemaRegistry.register(_category, _fields)
