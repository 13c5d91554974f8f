"""
Static geography -> Vertex AI region tables.

Loaded once at import and exposed read-only; nothing mutates them at runtime.
"""

from types import MappingProxyType

# Regions that serve the image model.
SUPPORTED_LOCATIONS: tuple[str, ...] = (
    "us-central1",
    "us-east1",
    "us-east4",
    "us-east5",
    "us-south1",
    "us-west1",
    "us-west4",
    "asia-northeast1",
    "asia-northeast3",
    "asia-southeast1",
    "europe-west1",
    "europe-west2",
    "europe-west3",
    "europe-west4",
)

DEFAULT_LOCATION = "us-central1"

# Edge data-center (IATA airport code) -> region.
COLO_TO_REGION = MappingProxyType(
    {
        # Tokyo
        "NRT": "asia-northeast1",
        "KIX": "asia-northeast1",
        "ICN": "asia-northeast1",
        "TPE": "asia-northeast1",
        # Singapore
        "SIN": "asia-southeast1",
        "KUL": "asia-southeast1",
        "BKK": "asia-southeast1",
        "MNL": "asia-southeast1",
        # US central
        "DFW": "us-central1",
        "ORD": "us-central1",
        "DEN": "us-central1",
        "MCI": "us-central1",
        # US west
        "LAX": "us-west1",
        "SJC": "us-west1",
        "SEA": "us-west1",
        "PDX": "us-west1",
        # US east
        "IAD": "us-east1",
        "EWR": "us-east1",
        "BOS": "us-east1",
        "ATL": "us-east1",
        # London
        "LHR": "europe-west2",
        "MAN": "europe-west2",
        "DUB": "europe-west2",
        # Frankfurt
        "FRA": "europe-west3",
        "MUC": "europe-west3",
        "VIE": "europe-west3",
        "ZUR": "europe-west3",
        # Netherlands
        "AMS": "europe-west4",
        "CPH": "europe-west4",
        "OSL": "europe-west4",
    }
)

# ISO 3166-1 alpha-2 country code -> region.
COUNTRY_TO_REGION = MappingProxyType(
    {
        "JP": "asia-northeast1",
        "KR": "asia-northeast1",
        "TW": "asia-northeast1",
        "HK": "asia-northeast1",
        "MO": "asia-northeast1",
        "SG": "asia-southeast1",
        "MY": "asia-southeast1",
        "TH": "asia-southeast1",
        "ID": "asia-southeast1",
        "PH": "asia-southeast1",
        "VN": "asia-southeast1",
        "US": "us-central1",
        "CA": "us-central1",
        "MX": "us-central1",
        "GB": "europe-west2",
        "IE": "europe-west2",
        "IS": "europe-west2",
        "DE": "europe-west3",
        "AT": "europe-west3",
        "CH": "europe-west3",
        "CZ": "europe-west3",
        "PL": "europe-west3",
        "NL": "europe-west4",
        "BE": "europe-west4",
        "DK": "europe-west4",
        "NO": "europe-west4",
        "SE": "europe-west4",
        "FI": "europe-west4",
        "FR": "europe-west1",
        "ES": "europe-west1",
        "PT": "europe-west1",
        "IT": "europe-west1",
    }
)

# Two-letter continent code -> region.
CONTINENT_TO_REGION = MappingProxyType(
    {
        "AS": "asia-northeast1",
        "NA": "us-central1",
        "EU": "europe-west4",
        "SA": "us-central1",
        "AF": "europe-west1",
        "OC": "asia-southeast1",
    }
)
