"""Utility for resolving ledger account references to IDs."""

from financeos.domain.errors import NotFoundError
from financeos.domain.ledger_account import LedgerAccountService


def resolve_account(account_service: LedgerAccountService, business_id: int, account: str | int) -> int:
    """Resolve an account code, ID or name to an account ID.

    Codes win over IDs, since codes such as "1000" are numeric too: "1000"
    resolves to the account coded 1000, "7" to account ID 7 when no account
    is coded "7". Names are matched case-insensitively as a last resort.

    Raises:
        NotFoundError: If no account in the business matches
    """
    ref = str(account).strip()

    by_code = account_service.get_account_by_code(business_id, ref)
    if by_code is not None:
        return by_code.id

    try:
        account_id = int(ref)
    except ValueError:
        account_id = None
    if account_id is not None:
        return account_service.get_account(business_id, account_id).id

    for acc in account_service.list_accounts(business_id):
        if acc.name.lower() == ref.lower():
            return acc.id

    raise NotFoundError(f"Ledger account '{ref}' not found")
