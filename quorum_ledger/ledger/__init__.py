"""Durable state: stores, the operation journal and the audit tool."""
