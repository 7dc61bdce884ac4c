from django.db import models


class WebhookLog(models.Model):
    """Received gateway notifications, used to ignore redeliveries."""

    event_type = models.CharField(max_length=60)
    reference = models.CharField(max_length=100)
    payload = models.JSONField(default=dict)
    processed = models.BooleanField(default=False)
    processing_error = models.TextField(blank=True)
    received_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        app_label = "payment_system"
        db_table = "webhook_logs"
        ordering = ["-received_at"]
        constraints = [models.UniqueConstraint(fields=["event_type", "reference"], name="unique_webhook_event")]

    def __str__(self):
        return f"{self.event_type} {self.reference}"
