"""Webhook call log: storage, paged listing, status breakdown and retention pruning."""
