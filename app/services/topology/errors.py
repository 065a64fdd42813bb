"""Exceptions raised by the PON topology services."""

from fastapi import HTTPException


class TopologyNotFoundError(HTTPException):
    """Raised when a requested network element does not exist."""

    def __init__(self, element_type: str, business_id: str):
        self.element_type = element_type
        self.business_id = business_id
        super().__init__(
            status_code=404,
            detail=f"{element_type.upper()} not found",
        )


class UnknownSplitterError(ValueError):
    """Raised in strict mode for a split ratio missing from the loss table."""

    def __init__(self, label: str | None):
        self.label = label
        super().__init__(f"Unknown splitter type: {label!r}")


class UnknownTechnologyError(ValueError):
    """Raised in strict mode for an OLT technology missing from the capacity table."""

    def __init__(self, technology: str | None):
        self.technology = technology
        super().__init__(f"Unknown OLT technology: {technology!r}")
