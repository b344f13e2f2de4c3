"""Plain-language names and values for data record fields."""

from __future__ import annotations

import json
import re
from typing import Any

from eligibility.logic.expression import UNDEFINED

FIELD_NAME_MAPPINGS: dict[str, str] = {
    # Personal
    "age": "your age",
    "isPregnant": "pregnancy status",
    "hasChildren": "whether you have children",
    "hasQualifyingDisability": "qualifying disability status",
    "isCitizen": "citizenship status",
    "isLegalResident": "legal residency status",
    "ssn": "Social Security number",
    # Financial
    "householdIncome": "your household's monthly income",
    "householdSize": "your household size",
    "income": "your income",
    "grossIncome": "your gross income",
    "netIncome": "your net income",
    "monthlyIncome": "your monthly income",
    "annualIncome": "your annual income",
    "assets": "your household assets",
    "resources": "your available resources",
    "liquidAssets": "your liquid assets",
    "vehicleValue": "your vehicle value",
    "bankBalance": "your bank account balance",
    # Location
    "state": "your state of residence",
    "stateHasExpanded": "whether your state has expanded coverage",
    "zipCode": "your ZIP code",
    "county": "your county",
    "jurisdiction": "your location",
    # Circumstances
    "hasHealthInsurance": "current health insurance coverage",
    "employmentStatus": "your employment status",
    "isStudent": "student status",
    "isVeteran": "veteran status",
    "isSenior": "senior status (65+)",
    "hasMinorChildren": "whether you have children under 18",
    # Housing
    "housingCosts": "your housing costs",
    "rentAmount": "your monthly rent",
    "mortgageAmount": "your monthly mortgage",
    "isHomeless": "housing situation",
    # Current benefits
    "receivesSSI": "Supplemental Security Income (SSI)",
    "receivesSNAP": "SNAP benefits",
    "receivesTANF": "TANF benefits",
    "receivesWIC": "WIC benefits",
    "receivesUnemployment": "unemployment benefits",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def format_field_name(field: str) -> str:
    """``householdIncome -> "your household's monthly income"``, else Title Case."""
    if field in FIELD_NAME_MAPPINGS:
        return FIELD_NAME_MAPPINGS[field]
    words = _CAMEL_BOUNDARY.sub(" ", field).replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def format_value(value: Any) -> str:
    if value is UNDEFINED:
        return "not provided"
    if value is None:
        return "empty"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (int, float)):
        if value > 100:
            return f"${value:,}"
        return str(value)
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, list):
        return f"[{len(value)} items]"
    return json.dumps(value, sort_keys=True, default=str)
