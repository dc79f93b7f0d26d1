"""Server side of the company import: storage, bulk insert, and HTTP endpoint."""

from .service import ImportPermissionError, bulk_import_companies

__all__ = ["ImportPermissionError", "bulk_import_companies"]
