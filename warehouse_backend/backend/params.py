# backend/params.py

"""
Query-string helpers shared by list endpoints.

Bad values raise ValueError; views map that to a 400 with {"detail": ...}.
"""

TRUE_VALUES = {"1", "true", "yes"}


def int_param(params, name, default, *, minimum=0, maximum=None):
    raw = (params.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    if maximum is not None:
        value = min(value, maximum)
    return value


def flag_param(params, name) -> bool:
    return (params.get(name) or "").strip().lower() in TRUE_VALUES
