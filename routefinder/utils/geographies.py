from __future__ import annotations

from typing import Dict, Optional

# Alternate spellings/abbreviations
_PROVINCE_NORMALIZATION_MAP = {
    "NEWFOUNDLAND AND LABRADOR": "Newfoundland and Labrador",
    "NEWFOUNDLAND": "Newfoundland and Labrador",
    "NL": "Newfoundland and Labrador",
    "PRINCE EDWARD ISLAND": "Prince Edward Island",
    "PEI": "Prince Edward Island",
    "PE": "Prince Edward Island",
    "NOVA SCOTIA": "Nova Scotia",
    "NS": "Nova Scotia",
    "NEW BRUNSWICK": "New Brunswick",
    "NB": "New Brunswick",
    "QUEBEC": "Quebec",
    "QC": "Quebec",
    "ONTARIO": "Ontario",
    "ON": "Ontario",
    "MANITOBA": "Manitoba",
    "MB": "Manitoba",
    "SASKATCHEWAN": "Saskatchewan",
    "SK": "Saskatchewan",
    "ALBERTA": "Alberta",
    "AB": "Alberta",
    "BRITISH COLUMBIA": "British Columbia",
    "BRITISHCOLUMBIA": "British Columbia",
    "BC": "British Columbia",
    "YUKON": "Yukon",
    "YT": "Yukon",
    "NORTHWEST TERRITORIES": "Northwest Territories",
    "NWT": "Northwest Territories",
    "NUNAVUT": "Nunavut",
    "NU": "Nunavut",
}

_UK_NATION_NORMALIZATION_MAP = {
    "ENGLAND": "England",
    "ENG": "England",
    "SCOTLAND": "Scotland",
    "SCO": "Scotland",
    "WALES": "Wales",
    "CYMRU": "Wales",
    "NORTHERN IRELAND": "Northern Ireland",
    "NI": "Northern Ireland",
}

# Country aliases → the names used in the route catalog
_COUNTRY_NORMALIZATION_MAP: Dict[str, str] = {
    "UK": "United Kingdom",
    "GB": "United Kingdom",
    "GREAT BRITAIN": "United Kingdom",
    "BRITAIN": "United Kingdom",
    "UNITED KINGDOM": "United Kingdom",
    "US": "United States",
    "USA": "United States",
    "UNITED STATES OF AMERICA": "United States",
    "UNITED STATES": "United States",
    "CA": "Canada",
    "CANADA": "Canada",
    "IE": "Ireland",
    "EIRE": "Ireland",
    "REPUBLIC OF IRELAND": "Ireland",
    "IRELAND": "Ireland",
    "AU": "Australia",
    "AUSTRALIA": "Australia",
    "NZ": "New Zealand",
    "NEW ZEALAND": "New Zealand",
    "ZA": "South Africa",
    "RSA": "South Africa",
    "SOUTH AFRICA": "South Africa",
    "SG": "Singapore",
    "SINGAPORE": "Singapore",
    "PK": "Pakistan",
    "PAKISTAN": "Pakistan",
    "IN": "India",
    "INDIA": "India",
    "EUROPEAN UNION": "EU",
    "EU": "EU",
    "UAE": "United Arab Emirates",
    "AE": "United Arab Emirates",
    "UNITED ARAB EMIRATES": "United Arab Emirates",
    "QA": "Qatar",
    "QATAR": "Qatar",
    "KSA": "Saudi Arabia",
    "SAUDI": "Saudi Arabia",
    "SAUDI ARABIA": "Saudi Arabia",
    "OM": "Oman",
    "OMAN": "Oman",
}


def _lookup_key(name: str) -> str:
    return " ".join(name.strip().upper().replace(".", "").split())


def canonicalize_canadian_region(name: Optional[str]) -> Optional[str]:
    """Map abbreviations/synonyms to canonical province/territory names."""
    if not name:
        return None
    cleaned = name.strip()
    if not cleaned:
        return None
    return _PROVINCE_NORMALIZATION_MAP.get(_lookup_key(cleaned), cleaned)


def canonicalize_country(name: Optional[str]) -> str:
    """Map country abbreviations (UK, USA, UAE, KSA...) to catalog names; unknown names pass through trimmed."""
    if not name:
        return ""
    cleaned = name.strip()
    return _COUNTRY_NORMALIZATION_MAP.get(_lookup_key(cleaned), cleaned)


def canonicalize_region(country: str, region: Optional[str]) -> str:
    """
    Canonicalize a sub-national region for the given (canonical) destination country.

    Countries without known subdivisions keep the trimmed input; blank input
    becomes an empty string.
    """
    if not region or not region.strip():
        return ""
    if country == "Canada":
        return canonicalize_canadian_region(region) or ""
    if country == "United Kingdom":
        return _UK_NATION_NORMALIZATION_MAP.get(_lookup_key(region), region.strip())
    return region.strip()
