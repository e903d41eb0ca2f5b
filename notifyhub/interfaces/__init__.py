"""Delivery mechanisms exposing the notification manager."""
