from __future__ import annotations

# Organizational parts in display order; pending breakdowns for sev courses
# follow this order when counts tie.
PART_ORDER: tuple[str, ...] = (
    "IQC G",
    "IQC 1P",
    "IQC 2P",
    "IQC 3P",
    "Injection Innovation Support T/F",
)

PART_LABELS: dict[str, str] = {
    "IQC G": "G",
    "IQC 1P": "1P",
    "IQC 2P": "2P",
    "IQC 3P": "3P",
    "Injection Innovation Support T/F": "TF",
}

# Parts offered at registration; "Other" never shows in breakdowns unless
# someone is pending there.
REGISTRATION_PARTS: tuple[str, ...] = (*PART_ORDER, "Other")

# Vendor breakdowns show at most this many companies
VENDOR_GROUP_LIMIT = 10

SEED_ADMIN = {
    "id": "16041988",
    "name": "System Administrator",
    "part": "IQC Management",
    "group": "ADMIN",
    "company": "sev",
    "role": "admin",
}
