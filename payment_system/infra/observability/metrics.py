from prometheus_client import Counter, Histogram


payment_volume_total = Counter("payment_volume_total", "Buyer payment volume in major units", ["currency", "status"])
payments_total = Counter("payments_total", "Buyer payment attempts by outcome", ["status"])

payout_volume_total = Counter("payout_volume_total", "Seller payout volume in major units", ["currency", "status"])
payout_attempts_total = Counter("payout_attempts_total", "Seller transfer attempts by outcome", ["status"])

refunds_total = Counter("refunds_total", "Buyer refunds by outcome", ["status"])
refund_volume_total = Counter("refund_volume_total", "Refunded volume in major units", ["currency"])

webhooks_received_total = Counter("payment_webhooks_received_total", "Gateway webhooks received", ["event", "result"])
gateway_call_duration = Histogram("payment_gateway_call_seconds", "Gateway call latency", ["operation"])
