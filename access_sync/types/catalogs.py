"""Fixed subject and scope catalogs."""

SUBSTANCES: tuple[str, ...] = (
    "Ketamine",
    "MDMA",
    "Psilocybin",
    "Lysergic Acid Diethylamide",
)

# 193 UN member states (ISO 3166-1 alpha-2 codes)
COUNTRIES: tuple[str, ...] = (
    "AF", "AL", "DZ", "AD", "AO", "AG", "AR", "AM", "AU", "AT", "AZ", "BS", "BH", "BD",
    "BB", "BY", "BE", "BZ", "BJ", "BT", "BO", "BA", "BW", "BR", "BN", "BG", "BF", "BI",
    "CV", "KH", "CM", "CA", "CF", "TD", "CL", "CN", "CO", "KM", "CD", "CG", "CR", "CI",
    "HR", "CU", "CY", "CZ", "DK", "DJ", "DM", "DO", "EC", "EG", "SV", "GQ", "ER", "EE",
    "SZ", "ET", "FJ", "FI", "FR", "GA", "GM", "GE", "DE", "GH", "GR", "GD", "GT", "GN",
    "GW", "GY", "HT", "HN", "HU", "IS", "IN", "ID", "IR", "IQ", "IE", "IL", "IT", "JM",
    "JP", "JO", "KZ", "KE", "KI", "KP", "KR", "KW", "KG", "LA", "LV", "LB", "LS", "LR",
    "LY", "LI", "LT", "LU", "MG", "MW", "MY", "MV", "ML", "MT", "MH", "MR", "MU", "MX",
    "FM", "MD", "MC", "MN", "ME", "MA", "MZ", "MM", "NA", "NR", "NP", "NL", "NZ", "NI",
    "NE", "NG", "MK", "NO", "OM", "PK", "PW", "PA", "PG", "PY", "PE", "PH", "PL",
    "PT", "QA", "RO", "RU", "RW", "KN", "LC", "VC", "WS", "SM", "ST", "SA", "SN", "RS",
    "SC", "SL", "SG", "SK", "SI", "SB", "SO", "ZA", "SS", "ES", "LK", "SD", "SR", "SE",
    "CH", "SY", "TJ", "TZ", "TH", "TL", "TG", "TO", "TT", "TN", "TR", "TM", "TV", "UG",
    "UA", "AE", "GB", "US", "UY", "UZ", "VU", "VE", "VN", "YE", "ZM", "ZW",
)


def parse_codes(values: list[str]) -> list[str]:
    """Flatten repeated/comma-separated CLI values into upper-case codes.

    Order is preserved and repeats are removed.
    """
    codes: list[str] = []
    for item in values:
        for code in item.split(","):
            code = code.strip().upper()
            if code and code not in codes:
                codes.append(code)
    return codes


def unknown_countries(codes: list[str]) -> list[str]:
    """Codes that are not in the COUNTRIES catalog."""
    known = set(COUNTRIES)
    return [code for code in codes if code not in known]
