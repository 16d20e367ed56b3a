"""Ledger error taxonomy.

LedgerError
├── ValidationError          (400) bad input, insufficient quantity, same source/destination
│   └── InvalidTransitionError  (400) wrong status for the requested transition
├── NotFoundError            (404) referenced asset type / location / record does not resolve
└── ForbiddenError           (403) role or home-location scope does not permit the operation

All checks that raise these run before the first mutating write of an operation.
"""


class LedgerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(LedgerError):
    status_code = 400


class InvalidTransitionError(ValidationError):
    def __init__(self, message: str, current_status=None):
        self.current_status = current_status
        super().__init__(message)


class NotFoundError(LedgerError):
    status_code = 404

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class ForbiddenError(LedgerError):
    status_code = 403
