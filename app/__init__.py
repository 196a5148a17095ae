"""Onward CRM: deal pipeline and multi-tenant workspace service."""

__version__ = "0.1.0"
