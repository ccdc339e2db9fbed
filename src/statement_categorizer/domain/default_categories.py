"""Categories seeded for every new user, as (name, type, color, icon)."""

DefaultCategory = tuple[str, str, str, str]

TOP_LEVEL: tuple[DefaultCategory, ...] = (
    # Expenses
    ("Groceries & Food", "expense", "#10b981", "🛒"),
    ("Utilities & Bills", "expense", "#3b82f6", "💡"),
    ("Transportation", "expense", "#f59e0b", "🚗"),
    ("Mobile & Internet", "expense", "#06b6d4", "📱"),
    ("Healthcare", "expense", "#ef4444", "🏥"),
    ("Education", "expense", "#8b5cf6", "📚"),
    ("Rent", "expense", "#64748b", "🏠"),
    ("Entertainment", "expense", "#ec4899", "🎬"),
    ("Shopping", "expense", "#f97316", "🛍️"),
    ("Fuel", "expense", "#991b1b", "⛽"),
    ("Insurance", "expense", "#1e40af", "🛡️"),
    ("EMI/Loans", "expense", "#7c2d12", "🏦"),
    ("Dining Out", "expense", "#ea580c", "🍽️"),
    ("Travel", "expense", "#0891b2", "✈️"),
    ("Banking & Credit Card Fees", "expense", "#7c3aed", "🏧"),
    ("Miscellaneous Expenses", "expense", "#6b7280", "📋"),
    # Income
    ("Salary", "income", "#22c55e", "💰"),
    ("Rental Income", "income", "#16a34a", "🏘️"),
    ("Freelancing", "income", "#059669", "💻"),
    ("Interest Income", "income", "#0ea5e9", "🏛️"),
    ("Bonus", "income", "#84cc16", "🎁"),
    ("Other Income", "income", "#65a30d", "💵"),
    ("Miscellaneous Income", "income", "#8b5cf6", "📝"),
    ("Dividend Income", "income", "#059669", "💰"),
    ("Capital Gains", "income", "#0284c7", "📈"),
    # Farm income
    ("Farm Revenue", "income", "#65a30d", "🌾"),
    ("Crop Sales", "income", "#84cc16", "🌽"),
    ("Livestock Income", "income", "#a3a3a3", "🐄"),
    ("Farm Rental Income", "income", "#16a34a", "🏡"),
    ("Agricultural Subsidies", "income", "#22c55e", "🏛️"),
    # Farm expenses
    ("Farm Labor", "expense", "#92400e", "👨‍🌾"),
    ("Seeds & Fertilizers", "expense", "#059669", "🌱"),
    ("Farm Fuel & Energy", "expense", "#dc2626", "⛽"),
    ("Irrigation & Water", "expense", "#0ea5e9", "💧"),
    ("Pesticides & Chemicals", "expense", "#7c2d12", "🧪"),
    ("Farm Maintenance", "expense", "#6b7280", "🔧"),
    ("Livestock Feed", "expense", "#a3a3a3", "🥬"),
    ("Veterinary Services", "expense", "#ef4444", "🩺"),
    ("Farm Insurance", "expense", "#1e40af", "🛡️"),
    ("Farm Transportation", "expense", "#f59e0b", "🚚"),
    # Asset movements
    ("Asset Purchase", "asset", "#dc2626", "🛒"),
    ("Asset Sale", "asset", "#059669", "💰"),
    # Investments
    ("Equity Investments", "investment", "#dc2626", "📊"),
    ("Mutual Fund Investments", "investment", "#7c3aed", "📋"),
    ("Fixed Deposits", "investment", "#059669", "🏦"),
    ("Other Investments", "investment", "#4338ca", "💼"),
)

CHILDREN: dict[str, tuple[DefaultCategory, ...]] = {
    "Asset Purchase": (
        ("Stock Purchase", "asset", "#dc2626", "📈"),
        ("Mutual Fund Purchase", "asset", "#7c3aed", "📊"),
        ("Bond Purchase", "asset", "#059669", "📜"),
        ("Gold Purchase", "asset", "#d97706", "🥇"),
        ("Crypto Purchase", "asset", "#f59e0b", "₿"),
        ("Real Estate Purchase", "asset", "#92400e", "🏠"),
        ("PPF Contribution", "asset", "#4338ca", "🛡️"),
        ("EPF Contribution", "asset", "#3730a3", "👔"),
        ("NPS Contribution", "asset", "#312e81", "🎯"),
        ("Fixed Deposit", "asset", "#065f46", "🏦"),
        ("Farm Land Purchase", "asset", "#92400e", "🌾"),
        ("Farm Equipment Purchase", "asset", "#7c2d12", "🚜"),
        ("Irrigation System", "asset", "#0ea5e9", "💧"),
        ("Farm Buildings", "asset", "#6b7280", "🏚️"),
        ("Livestock Purchase", "asset", "#a3a3a3", "🐄"),
        ("Solar Panels (Farm)", "asset", "#fbbf24", "☀️"),
        ("Bore Well Installation", "asset", "#06b6d4", "🕳️"),
        ("Farm Vehicles", "asset", "#f59e0b", "🚚"),
    ),
    "Asset Sale": (
        ("Stock Sale", "asset", "#059669", "📈"),
        ("Mutual Fund Redemption", "asset", "#16a34a", "📊"),
        ("Bond Sale", "asset", "#22c55e", "📜"),
        ("Gold Sale", "asset", "#eab308", "🥇"),
        ("Crypto Sale", "asset", "#facc15", "₿"),
        ("Real Estate Sale", "asset", "#a3a3a3", "🏠"),
        ("FD Maturity", "asset", "#10b981", "🏦"),
        ("Farm Land Sale", "asset", "#84cc16", "🌾"),
        ("Farm Equipment Sale", "asset", "#22c55e", "🚜"),
        ("Livestock Sale", "asset", "#16a34a", "🐄"),
        ("Farm Vehicle Sale", "asset", "#15803d", "🚚"),
    ),
    "Equity Investments": (
        ("Zerodha - Stock Purchase", "investment", "#dc2626", "🔴"),
        ("Zerodha - Intraday", "investment", "#f87171", "⚡"),
        ("Zerodha - F&O", "investment", "#b91c1c", "📉"),
        ("Other Broker - Equity", "investment", "#ef4444", "📈"),
    ),
    "Mutual Fund Investments": (
        ("Groww - SIP", "investment", "#7c3aed", "🔄"),
        ("Groww - Lumpsum", "investment", "#a855f7", "💰"),
        ("Zerodha - MF", "investment", "#8b5cf6", "📊"),
        ("ELSS Investments", "investment", "#6d28d9", "🧾"),
        ("Other AMC - Direct", "investment", "#7c2d12", "🏢"),
    ),
    "Fixed Deposits": (
        ("Bank FD", "investment", "#059669", "🏦"),
        ("Corporate FD", "investment", "#047857", "🏢"),
        ("Tax Saver FD", "investment", "#065f46", "📋"),
    ),
    "Other Investments": (
        ("PPF", "investment", "#4338ca", "🛡️"),
        ("EPF", "investment", "#3730a3", "👔"),
        ("NPS", "investment", "#312e81", "🎯"),
        ("Gold/Silver", "investment", "#d97706", "🥇"),
        ("Crypto", "investment", "#f59e0b", "₿"),
        ("Real Estate", "investment", "#92400e", "🏠"),
    ),
    "Banking & Credit Card Fees": (
        ("Account Maintenance Fee", "expense", "#7c3aed", "🏦"),
        ("ATM Charges", "expense", "#8b5cf6", "🏧"),
        ("Credit Card Annual Fee", "expense", "#a855f7", "💳"),
        ("Credit Card Late Payment Fee", "expense", "#c084fc", "⏰"),
        ("Cheque Book Charges", "expense", "#ddd6fe", "📝"),
        ("Online Transaction Charges", "expense", "#7c3aed", "💻"),
        ("SMS/Email Charges", "expense", "#8b5cf6", "📱"),
        ("Demat Account Charges", "expense", "#a855f7", "📊"),
        ("Loan Processing Fee", "expense", "#c084fc", "📋"),
        ("Foreign Transaction Fee", "expense", "#ddd6fe", "🌍"),
        ("Overdraft Charges", "expense", "#7c3aed", "⚠️"),
        ("NEFT/RTGS Charges", "expense", "#8b5cf6", "💸"),
    ),
    "Miscellaneous Expenses": (
        ("Gifts & Donations", "expense", "#6b7280", "🎁"),
        ("Pet Expenses", "expense", "#9ca3af", "🐕"),
        ("Subscription Services", "expense", "#6b7280", "📺"),
        ("Repair & Maintenance", "expense", "#9ca3af", "🔧"),
        ("Legal & Professional", "expense", "#6b7280", "⚖️"),
        ("Books & Magazines", "expense", "#9ca3af", "📚"),
        ("Other Expenses", "expense", "#6b7280", "📋"),
    ),
    "Miscellaneous Income": (
        ("Cashback & Rewards", "income", "#8b5cf6", "🎯"),
        ("Refunds", "income", "#a855f7", "↩️"),
        ("Gift Money", "income", "#c084fc", "🎁"),
        ("Competition Prize", "income", "#ddd6fe", "🏆"),
        ("Found Money", "income", "#8b5cf6", "💰"),
        ("Expense Reimbursement", "income", "#a855f7", "📄"),
        ("Other Income Sources", "income", "#c084fc", "💵"),
    ),
}
