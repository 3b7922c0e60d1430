"""GST Letter Drafting Backend Application.

An API for Indian Chartered Accountants to draft GST compliance letters,
metered by monthly plan credits.

Modules:
    - core: Configuration, database, logging, metrics and tracing
    - modules.auth: Account registration and JWT authentication
    - modules.credits: Plan allotments, monthly cycles and the credit meter
    - modules.billing: Checkout orders, payment verification and plan upgrades
    - modules.letters: Metered letter generation and history
"""

__version__ = "0.1.0"
