"""
Coarse text categories for extracted transactions.

Categories are a display/reporting aid and are independent of account
coding: "TESCO" is always ``Expenses:Groceries`` whatever account code the
auto-coder assigns. Rules are evaluated top to bottom; first match wins.
"""

from dataclasses import dataclass

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class CategoryRule:
    """Description keywords (any of) -> category."""

    category: str
    keywords: tuple[str, ...]

    def matches(self, description: str) -> bool:
        return any(keyword in description for keyword in self.keywords)


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    # Income
    CategoryRule("Income:Salary", ("salary", "payroll")),
    CategoryRule("Income:Dividends", ("dividend",)),
    CategoryRule("Income:Interest", ("interest",)),
    CategoryRule("Income:Freelance", ("freelance", "invoice")),
    # Expenses
    CategoryRule(
        "Expenses:Groceries",
        ("tesco", "sainsbury", "asda", "morrisons", "waitrose", "aldi", "lidl", "grocery"),
    ),
    CategoryRule(
        "Expenses:Dining",
        ("uber", "deliveroo", "just eat", "restaurant", "cafe", "coffee"),
    ),
    CategoryRule("Expenses:Shopping", ("amazon", "ebay", "argos", "currys")),
    CategoryRule(
        "Expenses:Transport",
        ("petrol", "fuel", "parking", "transport", "train", "bus", "taxi"),
    ),
)


def categorize_transaction(description: str | None) -> str:
    """
    Category for a transaction description.

    Examples:
        >>> categorize_transaction("TESCO STORES 2034")
        'Expenses:Groceries'
        >>> categorize_transaction("")
        'Uncategorized'
    """
    if not description:
        return UNCATEGORIZED

    desc = description.lower()
    for rule in CATEGORY_RULES:
        if rule.matches(desc):
            return rule.category

    return UNCATEGORIZED
