"""
Registry error kinds.

Every failure a caller can see is one of these. Each carries a stable
result code and the HTTP status the API layer answers with.
"""


class RegistryError(Exception):
    """Base class for all registry result codes."""

    code = "registry_error"
    status_code = 400

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.code
        super().__init__(self.detail)


class UnauthorizedError(RegistryError):
    code = "unauthorized"
    status_code = 403


class InvalidDataError(RegistryError):
    code = "invalid_data"
    status_code = 422


class ProductNotFoundError(RegistryError):
    code = "product_not_found"
    status_code = 404


class SupplierNotFoundError(RegistryError):
    code = "supplier_not_found"
    status_code = 404


class ShipmentNotFoundError(RegistryError):
    code = "shipment_not_found"
    status_code = 404


class PredictionBelowThresholdError(RegistryError):
    code = "prediction_below_threshold"
    status_code = 422


class CycleInProgressError(RegistryError):
    code = "cycle_in_progress"
    status_code = 409
