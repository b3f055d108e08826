"""Domain-specific exceptions"""

from typing import List, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class TransactionParseError(DomainException):
    """Uploaded statement failed structural validation; nothing was scored"""

    def __init__(self, errors: List[str], warnings: Optional[List[str]] = None):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__("; ".join(self.errors) or "Transaction data is malformed or invalid")


class ProfileNotFoundError(DomainException):
    """No customer profile stored under the requested id"""

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"Customer profile not found: {customer_id}")


class InvalidStatusTransitionError(DomainException):
    """Requested customer status change is not part of the lifecycle"""

    pass


class TransactionBatchNotFoundError(DomainException):
    """Customer has a profile but no stored transaction batch to score"""

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"No stored transactions for customer: {customer_id}")
