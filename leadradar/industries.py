"""
Industry catalogue: ids, localized search terms, and classification of
directory category tags into one of the industry ids.
"""

from typing import Dict, Iterable, List, Optional, Tuple

INDUSTRY_TYPES = (
    "restaurant",
    "salon",
    "fitness",
    "medical",
    "retail",
    "automotive",
    "real_estate",
    "professional_services",
    "other",
)

INDUSTRY_LABELS = {
    "restaurant": "Restaurant & Cafe",
    "salon": "Salon & Spa",
    "fitness": "Fitness & Gym",
    "medical": "Medical & Dental",
    "retail": "Retail Store",
    "automotive": "Automotive",
    "real_estate": "Real Estate",
    "professional_services": "Professional Services",
    "other": "Other",
}

# Industries where online booking/reservations move the score
BOOKING_INDUSTRIES = frozenset({"salon", "fitness", "medical", "restaurant", "automotive"})

# Maps search works best with specific, localized terms. First entry is the primary query.
INDUSTRY_SEARCH_QUERIES: Dict[str, Dict[str, List[str]]] = {
    "de": {
        "restaurant": ["Restaurant", "Café", "Gaststätte", "Bistro"],
        "salon": ["Friseur", "Friseursalon", "Kosmetikstudio", "Nagelstudio", "Spa"],
        "fitness": ["Fitnessstudio", "Gym", "Sportstudio", "Yoga Studio"],
        "medical": ["Arztpraxis", "Zahnarzt", "Physiotherapie", "Heilpraktiker"],
        "retail": ["Einzelhandel", "Geschäft", "Boutique", "Laden"],
        "automotive": ["Autowerkstatt", "KFZ Werkstatt", "Autohaus", "Reifenservice"],
        "real_estate": ["Immobilienmakler", "Hausverwaltung", "Immobilien", "Makler"],
        "professional_services": ["Steuerberater", "Rechtsanwalt", "Unternehmensberatung", "Architekt"],
        "other": ["Dienstleistung", "Service"],
    },
    "en": {
        "restaurant": ["Restaurant", "Cafe", "Bistro", "Eatery"],
        "salon": ["Hair Salon", "Beauty Salon", "Nail Salon", "Spa", "Barber"],
        "fitness": ["Gym", "Fitness Center", "Yoga Studio", "Personal Trainer"],
        "medical": ["Doctor", "Dentist", "Physiotherapy", "Medical Clinic", "Chiropractor"],
        "retail": ["Retail Store", "Shop", "Boutique"],
        "automotive": ["Auto Repair", "Car Mechanic", "Auto Service", "Car Dealership"],
        "real_estate": ["Real Estate Agent", "Property Manager", "Realtor", "Real Estate Agency"],
        "professional_services": ["Accountant", "Lawyer", "Consultant", "Architect"],
        "other": ["Business", "Service"],
    },
}

# Classification order matters: a "car wash cafe" is a restaurant.
INDUSTRY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("restaurant", ("restaurant", "cafe", "coffee", "bar", "bakery", "food")),
    ("salon", ("salon", "spa", "beauty", "barber", "hair")),
    ("fitness", ("gym", "fitness", "yoga", "pilates")),
    ("medical", ("dentist", "doctor", "clinic", "medical", "health", "hospital", "pharmacy")),
    ("retail", ("store", "shop", "retail", "boutique", "market")),
    ("automotive", ("car", "auto", "mechanic", "repair", "dealer")),
    ("real_estate", ("real_estate", "property", "realtor")),
    ("professional_services", ("lawyer", "accountant", "consultant", "insurance", "finance")),
)


def _language_for_country(country_code: Optional[str]) -> str:
    return "de" if (country_code or "").lower() == "de" else "en"


def get_search_query(industry: str, country_code: Optional[str] = None) -> str:
    """Return the primary localized search term for an industry."""
    queries = INDUSTRY_SEARCH_QUERIES[_language_for_country(country_code)].get(industry)
    if queries:
        return queries[0]
    return industry.replace("_", " ")


def get_all_search_queries(industry: str, country_code: Optional[str] = None) -> List[str]:
    queries = INDUSTRY_SEARCH_QUERIES[_language_for_country(country_code)].get(industry)
    return list(queries) if queries else [industry.replace("_", " ")]


def detect_industry_type(types: Optional[Iterable[str]]) -> str:
    """Classify directory category tags into an industry id (substring match, first industry wins)."""
    types_lower = [str(t).lower() for t in (types or []) if t]
    for industry, keywords in INDUSTRY_KEYWORDS:
        if any(keyword in t for t in types_lower for keyword in keywords):
            return industry
    return "other"


def is_booking_industry(industry: Optional[str]) -> bool:
    return industry in BOOKING_INDUSTRIES
