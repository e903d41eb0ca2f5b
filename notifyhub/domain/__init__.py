"""Domain model of the notification store."""
