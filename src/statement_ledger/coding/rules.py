"""
Account coding rule tables (SSOT).

Rules are evaluated top to bottom against the lower-cased description; the
first matching rule decides the account code. Order is significant and is
part of the contract: moving a rule changes classification results.

Matching is plain substring matching, so "car" also matches "card". That is
a property of the tables, kept for reproducible coding.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CodingRule:
    """
    A single (predicate, result) pair.

    The rule matches when every ``all_of`` keyword is present and, if
    ``any_of`` is given, at least one of those keywords is present.
    """

    code: str
    label: str
    any_of: tuple[str, ...] = ()
    all_of: tuple[str, ...] = ()

    def matches(self, description: str) -> bool:
        if not all(keyword in description for keyword in self.all_of):
            return False
        if self.any_of:
            return any(keyword in description for keyword in self.any_of)
        return bool(self.all_of)


INCOME_RULES: tuple[CodingRule, ...] = (
    CodingRule("4000", "Sales", any_of=("salary", "wage", "payroll")),
    CodingRule("7000", "Interest Receivable", any_of=("interest",)),
    CodingRule("4010", "Fees", any_of=("dividend", "investment")),
)

EXPENSE_RULES: tuple[CodingRule, ...] = (
    CodingRule("6160", "Bank Charges", all_of=("bank", "fee")),
    CodingRule("6100", "Motor Expenses", any_of=("fuel", "petrol", "parking", "car")),
    CodingRule("6110", "Entertaining", any_of=("restaurant", "cafe", "lunch", "dinner")),
    CodingRule("6150", "Stationery and Printing", any_of=("office", "stationery", "supplies")),
    CodingRule("6120", "Telephone and Fax", any_of=("phone", "mobile", "internet", "broadband")),
    CodingRule("6170", "Insurance", any_of=("insurance",)),
    CodingRule("6300", "Rent", any_of=("rent", "rental")),
    CodingRule("6060", "Travel and Subsistence", any_of=("travel", "train", "bus", "taxi")),
    CodingRule("6180", "Software", any_of=("subscription", "membership")),
    CodingRule("6420", "Solicitors Fees", any_of=("legal", "solicitor", "lawyer")),
    CodingRule("6410", "Accountancy Fees", any_of=("accountant", "accounting", "bookkeeping")),
    CodingRule("6320", "Light and Heat", any_of=("electricity", "gas", "water", "utility")),
)


def match_rule(description: str | None, is_income: bool) -> CodingRule | None:
    """First rule of the income or expense table matching the description."""
    desc = (description or "").lower()
    rules = INCOME_RULES if is_income else EXPENSE_RULES
    for rule in rules:
        if rule.matches(desc):
            return rule
    return None
