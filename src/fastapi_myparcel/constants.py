"""Carrier identifiers and module-wide defaults."""

CARRIER_IDS: dict[str, int] = {
    "postnl": 1,
    "bpost": 2,
    "dpd": 4,
}

DEFAULT_CARRIER = "bpost"
DEFAULT_ALLOWED_CARRIERS: list[str] = ["postnl", "bpost", "dpd"]

DEFAULT_ENVIRONMENT = "production"

LABEL_FORMATS = ("A4", "A6")
DEFAULT_LABEL_FORMAT = "A6"
DEFAULT_A4_POSITION = 1

# Minor units per destination country.
DEFAULT_FREE_SHIPPING_THRESHOLDS: dict[str, int] = {}

DELIVERY_OPTIONS_PLATFORM = "belgie"
DELIVERY_OPTIONS_PACKAGE_TYPE = "package"
PACKAGE_TYPE_PACKAGE = 1
DEFAULT_WEIGHT_GRAMS = 1000

DELIVERY_TYPE_ID_TO_NAME: dict[int, str] = {
    1: "morning",
    2: "standard",
    3: "evening",
    4: "pickup",
    7: "express",
}
DELIVERY_TYPE_NAME_TO_ID: dict[str, int] = {
    name: type_id for type_id, name in DELIVERY_TYPE_ID_TO_NAME.items()
}

SHIPMENT_OPTION_KEYS = frozenset(
    {
        "age_check",
        "collect",
        "cooled_delivery",
        "insurance",
        "large_format",
        "only_recipient",
        "return",
        "same_day_delivery",
        "saturday_delivery",
        "signature",
    }
)

REQUIRED_PICKUP_FIELDS: tuple[str, ...] = (
    "location_code",
    "location_name",
    "cc",
    "city",
    "street",
    "postal_code",
)

HOUSE_NUMBER_COUNTRIES = frozenset({"NL", "BE"})

CONSIGNMENT_STATUS_CONCEPT = "concept"
CONSIGNMENT_STATUS_REGISTERED = "registered"
RETURN_LABEL_STATUS_SENT = "sent"
