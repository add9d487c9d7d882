"""
Brand name canonicalization and similarity scoring.
"""
from typing import Dict, List

# Key = canonical name, values = alternative spellings seen in price/station data
BRAND_ALIASES: Dict[str, List[str]] = {
    "Petron": ["Petron Corp", "Petron Corporation", "Petron Gas"],
    "Shell": ["Shell Pilipinas", "Shell Philippines", "Pilipinas Shell"],
    "Caltex": ["Chevron", "Caltex Philippines", "Chevron Philippines"],
    "Phoenix": ["Phoenix Petroleum", "Phoenix Fuels"],
    "Seaoil": ["Seaoil Philippines", "Sea Oil"],
    "Total": ["TotalEnergies", "Total Philippines"],
    "PTT": ["PTT Philippines", "PTT Oil"],
    "Unioil": ["Unioil Petroleum", "UNI Oil"],
    "Jetti": ["Jetti Petroleum", "Jetti Gas"],
    "Flying V": ["FlyingV"],
    "Petrotrade": ["Petro Trade"],
    "CleanFuel": ["Clean Fuel"],
    "Insular Oil": ["Insular"],
}


def normalize_brand_name(brand_name: str) -> str:
    """
    Map a free-text brand to its canonical name.

    Lookup order (first hit wins): exact canonical name, exact alias, input
    containing a canonical name or alias, canonical name or alias containing
    the input (only for inputs longer than 3 characters). Unknown brands are
    returned with their first character upper-cased.

    Args:
        brand_name (str): Raw brand text from a price or station record.

    Returns:
        str: Canonical brand name, or a best-effort passthrough.
    """
    if not brand_name:
        return ""

    value = brand_name.strip().lower()

    for standard, aliases in BRAND_ALIASES.items():
        if standard.lower() == value:
            return standard
        if any(alias.lower() == value for alias in aliases):
            return standard

    for standard, aliases in BRAND_ALIASES.items():
        if standard.lower() in value:
            return standard
        if any(alias.lower() in value for alias in aliases):
            return standard

    # Short tokens like "oil" would otherwise hit half the table
    if len(value) > 3:
        for standard, aliases in BRAND_ALIASES.items():
            if value in standard.lower() or any(value in alias.lower() for alias in aliases):
                return standard

    stripped = brand_name.strip()
    return stripped[:1].upper() + stripped[1:]


def calculate_brand_similarity(brand1: str, brand2: str) -> float:
    """
    Approximate similarity between two brand strings in [0, 1].

    This is a tiered heuristic, not an edit distance. Each tier only runs when
    the previous ones missed:
    raw/normalized equality (1.0), raw containment (0.9), normalized
    containment (0.8), shared words longer than 2 chars
    (0.5 + 0.3 * shared / max words), positional character overlap
    (0.3 + 0.2 * matching / min length, when more than 3 positions agree),
    otherwise 0.1.
    """
    if not brand1 or not brand2:
        return 0.0

    raw1 = brand1.strip().lower()
    raw2 = brand2.strip().lower()

    if raw1 == raw2:
        return 1.0

    normalized1 = normalize_brand_name(brand1).lower()
    normalized2 = normalize_brand_name(brand2).lower()

    if normalized1 == normalized2:
        return 1.0

    if raw1 in raw2 or raw2 in raw1:
        return 0.9
    if normalized1 in normalized2 or normalized2 in normalized1:
        return 0.8

    words1 = raw1.split()
    words2 = raw2.split()
    common_words = [word for word in words1 if len(word) > 2 and word in words2]
    if common_words:
        return 0.5 + 0.3 * len(common_words) / max(len(words1), len(words2))

    min_length = min(len(raw1), len(raw2))
    matching_chars = sum(1 for i in range(min_length) if raw1[i] == raw2[i])
    if matching_chars > 3:
        return 0.3 + 0.2 * matching_chars / min_length

    return 0.1
