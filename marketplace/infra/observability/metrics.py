from prometheus_client import Counter, Gauge, Histogram


# Order lifecycle
orders_placed_total = Counter("marketplace_orders_placed_total", "Orders created at checkout")
order_value = Histogram(
    "marketplace_order_value_zar",
    "Order total distribution in ZAR",
    buckets=[50, 100, 200, 350, 500, 750, 1000, 2000, float("inf")],
)
order_transitions_total = Counter(
    "marketplace_order_transitions_total", "Order status transitions", ["from_status", "to_status"]
)

# Commit workflow
orders_committed_total = Counter("marketplace_orders_committed_total", "Orders committed by sellers")
orders_declined_total = Counter("marketplace_orders_declined_total", "Orders declined by sellers")
orders_expired_total = Counter("marketplace_orders_expired_total", "Orders expired after the commit window")
commit_latency_hours = Histogram(
    "marketplace_commit_latency_hours",
    "Hours between payment and seller commit",
    buckets=[1, 2, 6, 12, 24, 36, 48, float("inf")],
)
pending_commits = Gauge("marketplace_pending_commits", "Paid orders awaiting seller commit")
reminders_sent_total = Counter("marketplace_reminders_sent_total", "Reminder notifications sent", ["kind"])

# Catalog and cart
book_reservation_failures = Counter("marketplace_book_reservation_failures_total", "Checkout reservation failures")

# Delivery
courier_fallbacks_total = Counter(
    "marketplace_courier_fallbacks_total", "Rate table used instead of carrier API", ["courier", "operation"]
)
courier_quote_duration = Histogram("marketplace_courier_quote_seconds", "Time to assemble delivery quotes")

# Notifications
notifications_created_total = Counter("marketplace_notifications_created_total", "Notifications created", ["type"])
