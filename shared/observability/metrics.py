from prometheus_client import Counter, Histogram

# Business Metrics
orders_created_total = Counter(
    "orders_created_total",
    "Order creation attempts by final outcome",
    ["outcome"] # Labels: 'completed', 'bad_request', 'upstream_not_found', ...
)

order_creation_duration_seconds = Histogram(
    "order_creation_duration_seconds",
    "Time spent in the order creation workflow"
)

order_upstream_requests_total = Counter(
    "order_upstream_requests_total",
    "Calls made to collaborator services",
    ["service", "outcome"] # service='user'|'product', outcome=status code or 'unavailable'
)
