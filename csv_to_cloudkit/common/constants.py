"""Application constants."""

USER_AGENT = "csv-to-cloudkit/0.3 (+server-to-server)"

EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 1
EXIT_PARTIAL = 10

MAX_RECORDS_PER_RUN = 200

CSV_COLUMNS = (
    "uuid",
    "country",
    "city",
    "name",
    "url",
    "latitude",
    "longitude",
    "status",
)

HEADER_KEY_ID = "X-Apple-CloudKit-Request-KeyID"
HEADER_DATE = "X-Apple-CloudKit-Request-ISO8601Date"
HEADER_SIGNATURE = "X-Apple-CloudKit-Request-SignatureV1"

RECORD_TYPE = "Location"
OPERATION_TYPE = "forceUpdate"
DEFAULT_ZONE = "_defaultZone"

DEFAULT_SETTINGS = {
    "cloudkit": {
        "base_url": "https://api.apple-cloudkit.com",
        "api_version": 1,
        "container": "iCloud.rocks.boulderbook.bldrbk",
        "environment": "development",
        "database": "public",
    },
    "http": {
        "connect_timeout": 20.0,
        "read_timeout": 120.0,
    },
    "publish": {
        "max_records": MAX_RECORDS_PER_RUN,
        "fail_fast": False,
    },
}

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "record",
    "event",
    "status",
    "state",
    "status_code",
    "duration_ms",
    "detail",
    "error_code",
    "message",
)
