"""Parser for customer data exports (Excel or CSV)."""
import math
from dataclasses import dataclass, field
from io import BytesIO

import pandas as pd


@dataclass
class CustomerData:
    """Parsed customer record."""
    full_name: str
    national_id: str | None
    account_number: str | None
    branch: str | None
    attributes: dict = field(default_factory=dict)


# Map export column names to our identity fields; everything else is an attribute
COLUMN_MAP = {
    "Full Name": "full_name",
    "National ID": "national_id",
    "Reg No": "account_number",
    "Branch": "branch",
}


def parse_customer_file(file_content: bytes, file_name: str) -> list[CustomerData]:
    """Parse a customer export into customer records.

    Columns other than the identity columns are kept as raw attributes keyed
    by their header, so a column named "Average Balance" feeds the rule
    family of the same name. Values are stored as read; numeric coercion
    happens at scoring time.

    Args:
        file_content: Raw bytes of the uploaded file.
        file_name: Original file name, used to pick the reader.

    Returns:
        List of parsed customer records.
    """
    if file_name.lower().endswith(".csv"):
        df = pd.read_csv(BytesIO(file_content))
    else:
        df = pd.read_excel(BytesIO(file_content))

    df.columns = [str(c).strip() for c in df.columns]

    if "Full Name" not in df.columns:
        raise ValueError("Missing required column: 'Full Name'")

    attribute_columns = [c for c in df.columns if c not in COLUMN_MAP]

    customers = []
    for _, row in df.iterrows():
        full_name = _safe_str(row["Full Name"])
        if not full_name:
            continue

        customers.append(
            CustomerData(
                full_name=full_name,
                national_id=_safe_id(row.get("National ID")),
                account_number=_safe_id(row.get("Reg No")),
                branch=_safe_str(row.get("Branch")),
                attributes={col: _attribute_value(row[col]) for col in attribute_columns},
            )
        )

    return customers


def _attribute_value(value):
    """Convert a cell to a JSON-safe value, None for blanks/NaN."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.date().isoformat()
    if hasattr(value, "item"):
        # numpy scalar
        value = value.item()
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, (int, float, bool)):
        return value
    return str(value)


def _safe_id(value) -> str | None:
    """Identifiers may be read as floats (1234.0); keep the digits only."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip() or None


def _safe_str(value) -> str | None:
    """Convert value to string, returning None for NaN/None."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return str(value).strip() or None
