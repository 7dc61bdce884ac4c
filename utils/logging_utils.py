

def mask_value(value: str) -> str:
    """Mask an email, reference or secret so it can be written to logs."""
    if not isinstance(value, str):
        return value
    if "@" in value:
        name, _, domain = value.partition("@")
        return (name[:2] + "***@" + domain) if name else "***@" + domain
    if len(value) > 12:
        return value[:4] + "..." + value[-4:]
    return "***"


def mask_account_number(account_number: str) -> str:
    """Keep only the last four digits of a bank account number."""
    digits = "".join(ch for ch in str(account_number or "") if ch.isdigit())
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]
