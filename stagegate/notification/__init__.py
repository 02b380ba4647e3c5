"""In-app notifications and email delivery for gate-review events."""
