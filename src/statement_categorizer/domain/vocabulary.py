"""
Shared category vocabulary for Indian bank transactions.

The quick-match rules, the LLM prompt guidance, the transaction-type keyword
families and the asset side-effect map all read from this module so that the
keyword sets cannot drift apart.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class QuickMatchRule:
    """An ordered keyword rule mapping to a suggested category name."""
    category: str
    keywords: tuple[str, ...]
    confidence: float
    group: str

    def first_hit(self, *texts: str) -> str | None:
        for keyword in self.keywords:
            if any(keyword in text for text in texts if text):
                return keyword
        return None


@dataclass(frozen=True)
class AssetMapping:
    asset_category: str
    sub_category: str
    is_sale: bool = False


# Order matters: the first rule whose keywords hit and whose category exists wins.
QUICK_MATCH_RULES: tuple[QuickMatchRule, ...] = (
    QuickMatchRule(
        category="Groceries & Food",
        keywords=("groceries", "grocery", "food", "swiggy", "zomato", "bigbasket", "dmart", "grofers", "fresh"),
        confidence=0.95,
        group="GROCERIES & FOOD",
    ),
    QuickMatchRule(
        category="Utilities & Bills",
        keywords=("electricity", "water", "gas", "bill", "bses", "tata power", "adani"),
        confidence=0.95,
        group="UTILITIES & BILLS",
    ),
    QuickMatchRule(
        category="Mobile & Internet",
        keywords=("recharge", "prepaid", "postpaid", "airtel", "jio", "vi", "bsnl", "mtnl"),
        confidence=0.95,
        group="MOBILE & INTERNET",
    ),
    QuickMatchRule(
        category="Transportation",
        keywords=("ola", "uber", "auto", "taxi", "metro", "petrol", "diesel", "fuel", "iocl", "bpcl", "hpcl"),
        confidence=0.95,
        group="TRANSPORTATION",
    ),
    QuickMatchRule(
        category="Stock Purchase",
        keywords=("zerodha", "stock purchase", "equity buy", "share buy", "kite", "upstox", "angel broking"),
        confidence=0.95,
        group="ASSET PURCHASE",
    ),
    QuickMatchRule(
        category="Mutual Fund Purchase",
        keywords=("groww", "sip", "systematic investment", "mutual fund", "mf purchase", "elss", "lumpsum"),
        confidence=0.95,
        group="ASSET PURCHASE",
    ),
    QuickMatchRule(
        category="Banking & Credit Card Fees",
        keywords=(
            "charges", "fee", "annual fee", "maintenance fee", "atm charges", "sms charges",
            "neft charges", "rtgs charges", "processing fee", "late payment", "overdraft",
            "foreign transaction", "demat charges",
        ),
        confidence=0.95,
        group="BANKING & CREDIT CARD FEES",
    ),
    QuickMatchRule(
        category="Miscellaneous Expenses",
        keywords=(
            "netflix", "amazon prime", "spotify", "subscription", "gift", "donation", "pet",
            "repair", "maintenance", "legal", "books", "magazine",
        ),
        confidence=0.90,
        group="MISCELLANEOUS EXPENSES",
    ),
    QuickMatchRule(
        category="Miscellaneous Income",
        keywords=(
            "cashback", "reward", "refund", "gift money", "prize", "reimbursement",
            "found money", "competition",
        ),
        confidence=0.90,
        group="MISCELLANEOUS INCOME",
    ),
    QuickMatchRule(
        category="Stock Sale",
        keywords=("stock sale", "equity sell", "share sell", "sell order", "profit booking"),
        confidence=0.95,
        group="ASSET SALE",
    ),
    QuickMatchRule(
        category="Mutual Fund Redemption",
        keywords=("mf redemption", "mutual fund redemption", "fund withdrawal", "sip withdrawal"),
        confidence=0.95,
        group="ASSET SALE",
    ),
    QuickMatchRule(
        category="PPF Contribution",
        keywords=("ppf", "epf contribution", "nps", "fixed deposit", "fd", "gold purchase", "crypto purchase"),
        confidence=0.90,
        group="ASSET PURCHASE",
    ),
    QuickMatchRule(
        category="Dividend Income",
        keywords=("dividend", "divd", "tcs dividend", "infosys dividend", "reliance dividend"),
        confidence=0.95,
        group="INCOME FROM ASSETS",
    ),
    QuickMatchRule(
        category="Capital Gains",
        keywords=("capital gain", "ltcg", "stcg", "profit from sale"),
        confidence=0.95,
        group="INCOME FROM ASSETS",
    ),
    QuickMatchRule(
        category="Crop Sales",
        keywords=("crop sales", "harvest", "farm produce", "agricultural income", "farm revenue"),
        confidence=0.95,
        group="FARM INCOME",
    ),
    QuickMatchRule(
        category="Livestock Income",
        keywords=("livestock", "cattle sale", "milk", "dairy", "poultry"),
        confidence=0.95,
        group="FARM INCOME",
    ),
    QuickMatchRule(
        category="Farm Rental Income",
        keywords=("farm rent", "land lease", "agricultural rent"),
        confidence=0.95,
        group="FARM INCOME",
    ),
    QuickMatchRule(
        category="Agricultural Subsidies",
        keywords=("subsidy", "agricultural subsidy", "govt subsidy", "crop insurance"),
        confidence=0.95,
        group="FARM INCOME",
    ),
    QuickMatchRule(
        category="Seeds & Fertilizers",
        keywords=("seeds", "fertilizer", "pesticide", "farm labor", "irrigation"),
        confidence=0.90,
        group="FARM EXPENSES",
    ),
    QuickMatchRule(
        category="Farm Equipment Purchase",
        keywords=("tractor", "farm equipment", "harvester", "plough"),
        confidence=0.90,
        group="FARM ASSETS",
    ),
    QuickMatchRule(
        category="Irrigation System",
        keywords=("bore well", "water pump", "drip irrigation", "sprinkler"),
        confidence=0.90,
        group="FARM ASSETS",
    ),
    QuickMatchRule(
        category="Veterinary Services",
        keywords=("veterinary", "animal feed", "cattle feed", "fodder"),
        confidence=0.90,
        group="FARM EXPENSES",
    ),
)


# Transaction-type keyword families, checked in this order.
ASSET_PURCHASE_KEYWORDS: tuple[str, ...] = (
    "zerodha", "groww", "sip", "mutual fund", "stock purchase", "equity buy", "share buy",
    "ppf", "epf", "nps", "fixed deposit", "fd", "gold purchase", "crypto", "bitcoin",
    "investment", "systematic investment plan", "lumpsum", "elss",
    "tractor", "farm equipment", "harvester", "irrigation", "bore well", "farm land",
    "livestock purchase", "cattle purchase", "farm building", "solar panel",
)

ASSET_SALE_KEYWORDS: tuple[str, ...] = (
    "stock sale", "equity sell", "share sell", "mutual fund redemption", "mf redemption",
    "fd maturity", "fixed deposit maturity", "gold sale", "crypto sale", "profit booking",
    "farm land sale", "tractor sale", "livestock sale", "cattle sale", "equipment sale",
)

INCOME_KEYWORDS: tuple[str, ...] = (
    "salary", "dividend", "divd", "interest", "bonus", "freelance", "capital gain",
    "ltcg", "stcg", "rent received",
    "crop sales", "harvest", "milk sales", "dairy income", "farm revenue", "agricultural income",
    "livestock income", "subsidy", "farm rental",
)


ASSET_CATEGORY_MAP: dict[str, AssetMapping] = {
    "Stock Purchase": AssetMapping("Stocks", "Individual Stocks"),
    "Mutual Fund Purchase": AssetMapping("Mutual Funds", "Equity Funds"),
    "PPF Contribution": AssetMapping("Fixed Deposits", "PPF"),
    "EPF Contribution": AssetMapping("Fixed Deposits", "EPF"),
    "NPS Contribution": AssetMapping("Fixed Deposits", "NPS"),
    "Gold Purchase": AssetMapping("Precious Metals", "Gold"),
    "Real Estate Purchase": AssetMapping("Real Estate", "Residential"),
    "Farm Equipment Purchase": AssetMapping("Farm Assets", "Equipment"),
    "Livestock Purchase": AssetMapping("Farm Assets", "Livestock"),
    "Asset Purchase": AssetMapping("Other Assets", "Miscellaneous"),
    "Stock Sale": AssetMapping("Stocks", "Individual Stocks", is_sale=True),
    "Mutual Fund Redemption": AssetMapping("Mutual Funds", "Equity Funds", is_sale=True),
    "Asset Sale": AssetMapping("Other Assets", "Miscellaneous", is_sale=True),
}


def render_rule_guidance(rules: tuple[QuickMatchRule, ...] = QUICK_MATCH_RULES) -> str:
    """Render the rule table as prompt guidance, grouped in first-seen order."""
    groups: dict[str, list[QuickMatchRule]] = {}
    for rule in rules:
        groups.setdefault(rule.group, []).append(rule)

    lines: list[str] = []
    for group, group_rules in groups.items():
        lines.append(f"{group}:")
        for rule in group_rules:
            keywords = ", ".join(keyword.upper() for keyword in rule.keywords)
            lines.append(f"- {rule.category}: {keywords}")
        lines.append("")
    return "\n".join(lines).rstrip()
