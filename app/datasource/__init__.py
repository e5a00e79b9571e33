"""Operational construction tables read by the BI engine."""
