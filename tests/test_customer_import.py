"""Tests for the customer export parser."""
import pytest

from app.parsers.customer_import import parse_customer_file

CSV = b"""Full Name,National ID,Reg No,Branch,Average Balance,Employment Years,Savings Rate
Layla Hassan,1987001,2001.0,Amman,120,4,12.5%
Karim Nasser,1987002,2002,Irbid,"1,250",,
,1987003,2003,Zarqa,10,1,
"""


def test_parses_identity_and_attribute_columns():
    # "1,250" keeps the balance column as text; scoring coerces it later
    customers = parse_customer_file(CSV, "customers.csv")

    assert [c.full_name for c in customers] == ["Layla Hassan", "Karim Nasser"]
    layla = customers[0]
    assert layla.national_id == "1987001"
    assert layla.account_number == "2001"
    assert layla.branch == "Amman"
    assert layla.attributes == {
        "Average Balance": "120",
        "Employment Years": 4,
        "Savings Rate": "12.5%",
    }


def test_blank_cells_become_none():
    karim = parse_customer_file(CSV, "customers.csv")[1]

    assert karim.attributes["Average Balance"] == "1,250"
    assert karim.attributes["Employment Years"] is None
    assert karim.attributes["Savings Rate"] is None


def test_headers_are_trimmed():
    content = b" Full Name , Average Balance \nNoor Haddad,75\n"

    customers = parse_customer_file(content, "export.CSV")

    assert customers[0].attributes == {"Average Balance": 75}
    assert customers[0].national_id is None


def test_missing_name_column_is_rejected():
    with pytest.raises(ValueError, match="Full Name"):
        parse_customer_file(b"Name,Average Balance\nLayla,120\n", "customers.csv")
