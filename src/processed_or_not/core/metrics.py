from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)

EXTERNAL_API_COUNT = Counter(
    "external_api_requests_total",
    "Total number of external API requests",
    ["source", "status"],
)

EXTERNAL_API_DURATION = Histogram(
    "external_api_duration_seconds",
    "Duration of external API requests in seconds",
    ["source"],
)

LOOKUP_OUTCOMES = Counter(
    "lookup_outcomes_total",
    "Total number of finished multi-source lookups",
    ["outcome"],
)

PROGRESS_SUBSCRIBERS = Gauge(
    "progress_subscribers",
    "Number of open progress subscriptions",
)

STORED_PRODUCT_HITS = Counter(
    "stored_product_hits_total", "Lookups answered from the product store"
)
