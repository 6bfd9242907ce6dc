"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - All valid query modes and source identifiers encoded as Enums, no raw string matching
    - Enum values equal the strings accepted on the wire (query params, JSON payloads)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Value Types ─────────────────────────────────────────────────

ApiKey = NewType("ApiKey", str)
ApiKeyHash = NewType("ApiKeyHash", str)     # sha256 hex, first 16 chars
Percent = NewType("Percent", float)


# ─── Enums ───────────────────────────────────────────────────────

class DollarType(str, Enum):
    """Normalized dollar rate types stored in dollar_rates.dollar_type."""
    OFICIAL = "OFICIAL"
    BLUE = "BLUE"
    MEP = "MEP"
    CCL = "CCL"
    MAYORISTA = "MAYORISTA"
    CRYPTO = "CRYPTO"
    TARJETA = "TARJETA"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RiskPeriod(str, Enum):
    """Preset windows for the riesgo-pais endpoint."""
    LATEST = "latest"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    YEAR_TO_DATE = "year_to_date"
    LAST_YEAR = "last_year"
    CUSTOM = "custom"


class BcraIndex(str, Enum):
    """BCRA Monetarias series persisted locally. Values are the table names."""
    CER = "cer"
    UVA = "uva"


class IndexQueryType(str, Enum):
    """Query modes for the CER/UVA endpoints."""
    LATEST = "latest"
    HISTORICAL = "historical"
    RANGE = "range"
    SPECIFIC_DATE = "specific-date"


class LaborView(str, Enum):
    TEMPORAL = "temporal"
    LATEST = "latest"
    BY_TYPE = "by_type"
    COMPARISON = "comparison"
    ANNUAL = "annual"


class LaborDataType(str, Enum):
    NATIONAL = "national"
    REGIONAL = "regional"
    DEMOGRAPHIC = "demographic"
    ALL = "all"


class PovertyDataType(str, Enum):
    NATIONAL = "national"
    REGIONAL = "regional"


class DataSource(str, Enum):
    """Provider identifiers recorded in cron execution logs."""
    DOLARAPI = "dolarapi.com"
    INDEC = "INDEC"
    BCRA = "BCRA"
    GOOGLE_SHEETS = "Google Sheets"
    INTERNAL = "internal"


class TaskStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class CronStatus(str, Enum):
    """Aggregate status of a cron execution."""
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"
